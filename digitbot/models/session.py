"""Session configuration value types."""

from dataclasses import dataclass
from typing import Any, Optional

from ..utils.numbers import to_number
from ..utils.sanitize import sanitize_tag, sanitize_text
from ..utils.time import parse_duration_seconds
from .account import Account


def _optional_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    number = to_number(value)
    return default if number is None else int(number)


def _optional_float(value: Any, default: float) -> float:
    number = to_number(value)
    return default if number is None else number


@dataclass(frozen=True)
class SessionConfig:
    """
    Validated settings for one trading session.

    Immutable for the life of the session. Build it with from_mapping()
    only after ConfigValidator.validate_session() reported no errors.
    """
    account_type: str
    trading_type: str
    trading_mode: str
    market: str
    contract_type: str
    currency: str
    base_stake: float
    take_profit: float
    stop_loss: float
    contract_duration_value: int
    contract_duration_unit: str
    session_duration_seconds: float
    telemetry_interval_seconds: float
    max_consecutive_losses: Optional[int] = None
    max_recovery_attempts: int = 2
    min_stake: float = 0.35
    max_stake: float = 2000.0

    @classmethod
    def from_mapping(
        cls,
        data: dict[str, Any],
        min_stake: float = 0.35,
        max_stake: float = 2000.0,
    ) -> "SessionConfig":
        """Build from a validated raw mapping."""
        return cls(
            account_type=sanitize_text(data["account_type"]),
            trading_type=sanitize_text(data["trading_type"]),
            trading_mode=sanitize_text(data["trading_mode"]),
            market=sanitize_text(data["market"]),
            contract_type=sanitize_tag(data["contract_type"]),
            currency=sanitize_tag(data["currency"]),
            base_stake=float(to_number(data["base_stake"])),  # type: ignore[arg-type]
            take_profit=float(to_number(data["take_profit"])),  # type: ignore[arg-type]
            stop_loss=float(to_number(data["stop_loss"])),  # type: ignore[arg-type]
            contract_duration_value=int(to_number(data["contract_duration_value"])),  # type: ignore[arg-type]
            contract_duration_unit=sanitize_text(data["contract_duration_unit"]).lower(),
            session_duration_seconds=parse_duration_seconds(data["session_duration"]),  # type: ignore[arg-type]
            telemetry_interval_seconds=parse_duration_seconds(data["telemetry_interval"]),  # type: ignore[arg-type]
            max_consecutive_losses=_optional_int(data.get("max_consecutive_losses")),
            max_recovery_attempts=_optional_int(data.get("max_recovery_attempts"), 2),
            min_stake=_optional_float(data.get("min_stake"), min_stake),
            max_stake=_optional_float(data.get("max_stake"), max_stake),
        )


@dataclass(frozen=True)
class TradingConfig:
    """Session settings plus the account context a strategy trades under."""
    session: SessionConfig
    account_token: str
    account: Optional[Account] = None
    session_id: str = ""

    @property
    def contract_type(self) -> str:
        return self.session.contract_type

    @property
    def base_stake(self) -> float:
        return self.session.base_stake
