"""Session lifecycle: controller, timers and summaries."""

from .accounts import find_account_entry
from .controller import SessionController
from .summary import build_audit_table, build_session_table, build_trading_summary, calculate_total_loss
from .timers import OneShotTimer, RepeatingTimer

__all__ = [
    "SessionController",
    "OneShotTimer",
    "RepeatingTimer",
    "build_audit_table",
    "build_session_table",
    "build_trading_summary",
    "calculate_total_loss",
    "find_account_entry",
]
