"""Trade persistence layer for audit trails and session replay."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import structlog

from ..errors import PersistenceError
from ..models.trade import TradeResult
from ..utils.time import utc_now


@dataclass
class StoredTrade:
    """Stored trade with metadata."""
    id: int
    session_id: str
    contract_id: str
    contract_type: str
    is_win: bool
    stake: float
    profit: float
    purchase_time: str
    trade_data: dict[str, Any]
    created_at: str


class TradeStore:
    """SQLite-based trade persistence layer."""

    def __init__(self, db_path: str = "trades.db"):
        self.db_path = Path(db_path)
        self.logger = structlog.get_logger("trade.store")
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id TEXT NOT NULL,
                    contract_id TEXT NOT NULL,
                    contract_type TEXT NOT NULL,
                    is_win INTEGER NOT NULL,
                    stake REAL NOT NULL,
                    profit REAL NOT NULL,
                    purchase_time TEXT NOT NULL,
                    trade_data TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE(session_id, contract_id)
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_trades_session_id ON trades(session_id)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_trades_purchase_time ON trades(purchase_time)
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", error=str(e))
            raise PersistenceError(str(e), operation="sqlite", target=str(self.db_path)) from e
        finally:
            if conn:
                conn.close()

    def insert_trade(self, result: TradeResult, session_id: str = "") -> Optional[int]:
        """
        Store a settled trade.

        Args:
            result: Trade settlement to store
            session_id: Session the trade belongs to

        Returns:
            Row ID if stored successfully, None otherwise
        """
        with self._lock:
            try:
                with self._get_connection() as conn:
                    cursor = conn.execute("""
                        INSERT OR REPLACE INTO trades (
                            session_id, contract_id, contract_type, is_win, stake,
                            profit, purchase_time, trade_data, created_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """, (
                        session_id,
                        result.contract_id,
                        result.contract_type,
                        int(result.is_win),
                        result.buy_price,
                        result.signed_profit,
                        result.purchase_time.isoformat(),
                        json.dumps(result.to_dict()),
                        utc_now().isoformat(),
                    ))

                    conn.commit()
                    trade_id = cursor.lastrowid

                    self.logger.info(
                        "Trade stored",
                        session_id=session_id,
                        contract_id=result.contract_id,
                        trade_id=trade_id
                    )

                    return trade_id

            except PersistenceError as e:
                self.logger.error(
                    "Failed to store trade",
                    session_id=session_id,
                    contract_id=result.contract_id,
                    error=str(e)
                )
                return None

    def get_trade(self, trade_id: int) -> Optional[StoredTrade]:
        """Get a trade by row ID."""
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM trades WHERE id = ?", (trade_id,)).fetchone()
            return self._row_to_stored_trade(row) if row else None

    def get_trades_by_session(self, session_id: str) -> list[StoredTrade]:
        """All trades of one session, oldest first."""
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT * FROM trades WHERE session_id = ? ORDER BY id
            """, (session_id,)).fetchall()

            return [self._row_to_stored_trade(row) for row in rows]

    def get_trades_by_time_range(
        self,
        start_time: datetime,
        end_time: datetime,
        limit: int = 1000
    ) -> list[StoredTrade]:
        """Trades purchased within a time range."""
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT * FROM trades
                WHERE purchase_time BETWEEN ? AND ?
                ORDER BY purchase_time LIMIT ?
            """, (start_time.isoformat(), end_time.isoformat(), limit)).fetchall()

            return [self._row_to_stored_trade(row) for row in rows]

    def get_session_stats(self, session_id: str) -> dict[str, Any]:
        """Run, win and profit totals for one session."""
        with self._get_connection() as conn:
            row = conn.execute("""
                SELECT COUNT(*) AS runs,
                       COALESCE(SUM(is_win), 0) AS wins,
                       COALESCE(SUM(stake), 0) AS total_stake,
                       COALESCE(SUM(profit), 0) AS total_profit
                FROM trades WHERE session_id = ?
            """, (session_id,)).fetchone()

            return {
                "runs": row["runs"],
                "wins": row["wins"],
                "losses": row["runs"] - row["wins"],
                "total_stake": row["total_stake"],
                "total_profit": row["total_profit"],
            }

    def _row_to_stored_trade(self, row: sqlite3.Row) -> StoredTrade:
        """Convert database row to StoredTrade object."""
        return StoredTrade(
            id=row["id"],
            session_id=row["session_id"],
            contract_id=row["contract_id"],
            contract_type=row["contract_type"],
            is_win=bool(row["is_win"]),
            stake=row["stake"],
            profit=row["profit"],
            purchase_time=row["purchase_time"],
            trade_data=json.loads(row["trade_data"]),
            created_at=row["created_at"],
        )


class InMemoryTradeStore:
    """Trade storage kept in a list, for paper sessions and tests."""

    def __init__(self) -> None:
        self.trades: list[tuple[str, TradeResult]] = []
        self._lock = threading.Lock()

    def insert_trade(self, result: TradeResult, session_id: str = "") -> int:
        with self._lock:
            self.trades.append((session_id, result))
            return len(self.trades)

    def get_trades_by_session(self, session_id: str) -> list[TradeResult]:
        return [result for sid, result in self.trades if sid == session_id]
