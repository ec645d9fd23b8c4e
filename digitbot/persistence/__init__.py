"""Trade persistence."""

from .trade_store import InMemoryTradeStore, StoredTrade, TradeStore

__all__ = ["TradeStore", "StoredTrade", "InMemoryTradeStore"]
