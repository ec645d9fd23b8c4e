"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

from ..models.enums import DurationUnit
from ..utils.numbers import to_number
from ..utils.sanitize import sanitize_text
from ..utils.time import parse_duration_seconds

VALID_DURATION_UNITS = tuple(unit.value for unit in DurationUnit)
RECOVERY_MODES = ("base", "conservative", "aggressive", "neutral")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    # Session fields in the order they are checked; label used in messages
    SESSION_TEXT_FIELDS = (
        ("trading_type", "Trading Type"),
        ("account_type", "Account Type"),
        ("market", "Market"),
        ("contract_type", "Contract Type"),
        ("currency", "Currency"),
    )
    SESSION_AMOUNT_FIELDS = (
        ("base_stake", "Stake"),
        ("take_profit", "Take Profit"),
        ("stop_loss", "Stop Loss"),
    )
    SESSION_DURATION_FIELDS = (
        ("session_duration", "Session Duration"),
        ("telemetry_interval", "Telemetry Interval"),
    )
    # Optional fields; checked only when present. Count fields carry their minimum
    SESSION_COUNT_FIELDS = (
        ("max_consecutive_losses", "Max Consecutive Losses", 1),
        ("max_recovery_attempts", "Max Recovery Attempts", 0),
    )
    SESSION_STAKE_BOUND_FIELDS = (
        ("min_stake", "Min Stake"),
        ("max_stake", "Max Stake"),
    )

    @staticmethod
    def validate_session(session: dict[str, Any]) -> list[ValidationError]:
        """
        Validate a raw session mapping.

        Errors are returned in check order, so errors[0] is the first
        failing field.
        """
        errors = []

        for name, label in ConfigValidator.SESSION_TEXT_FIELDS:
            value = session.get(name)
            if not sanitize_text(value):
                errors.append(ValidationError(
                    field=name,
                    message=f"{label} cannot be empty.",
                    value=value
                ))

        for name, label in ConfigValidator.SESSION_AMOUNT_FIELDS:
            value = session.get(name)
            number = to_number(value)
            if number is None or number <= 0:
                errors.append(ValidationError(
                    field=name,
                    message=f"{label} must be a positive number.",
                    value=value
                ))

        for name, label in ConfigValidator.SESSION_DURATION_FIELDS:
            value = session.get(name)
            if parse_duration_seconds(value) is None:
                errors.append(ValidationError(
                    field=name,
                    message=f"{label} must be a valid duration.",
                    value=value
                ))

        unit = sanitize_text(session.get("contract_duration_unit")).lower()
        if unit not in VALID_DURATION_UNITS:
            errors.append(ValidationError(
                field="contract_duration_unit",
                message="Contract Duration Unit cannot be empty.",
                value=session.get("contract_duration_unit")
            ))

        duration_value = to_number(session.get("contract_duration_value"))
        if duration_value is None or duration_value <= 0 or duration_value != int(duration_value):
            errors.append(ValidationError(
                field="contract_duration_value",
                message="Contract Duration Value must be a positive integer.",
                value=session.get("contract_duration_value")
            ))

        if not sanitize_text(session.get("trading_mode")):
            errors.append(ValidationError(
                field="trading_mode",
                message="Trading Mode cannot be empty.",
                value=session.get("trading_mode")
            ))

        for name, label, minimum in ConfigValidator.SESSION_COUNT_FIELDS:
            value = session.get(name)
            if value is None:
                continue
            number = to_number(value)
            if number is None or number < minimum or number != int(number):
                errors.append(ValidationError(
                    field=name,
                    message=f"{label} must be a whole number of at least {minimum}.",
                    value=value
                ))

        bounds = {}
        for name, label in ConfigValidator.SESSION_STAKE_BOUND_FIELDS:
            value = session.get(name)
            if value is None:
                continue
            number = to_number(value)
            if number is None or number <= 0:
                errors.append(ValidationError(
                    field=name,
                    message=f"{label} must be a positive number.",
                    value=value
                ))
            else:
                bounds[name] = number

        if len(bounds) == 2 and bounds["max_stake"] <= bounds["min_stake"]:
            errors.append(ValidationError(
                field="max_stake",
                message="Max Stake must be greater than Min Stake.",
                value=session.get("max_stake")
            ))

        return errors

    @staticmethod
    def validate_stake_limits(params: dict[str, Any]) -> list[ValidationError]:
        """Validate global stake bounds."""
        errors = []

        min_stake = params.get("min_stake")
        max_stake = params.get("max_stake")
        if not _is_number(min_stake) or min_stake <= 0:
            errors.append(ValidationError(
                field="min_stake",
                message="Must be a positive number",
                value=min_stake
            ))
        if not _is_number(max_stake) or max_stake <= 0:
            errors.append(ValidationError(
                field="max_stake",
                message="Must be a positive number",
                value=max_stake
            ))
        elif _is_number(min_stake) and max_stake <= min_stake:
            errors.append(ValidationError(
                field="max_stake",
                message="Must be greater than min_stake",
                value=max_stake
            ))

        return errors

    @staticmethod
    def validate_recovery_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate recovery sequencer tunables."""
        errors = []

        for name in ("max_volatility", "min_trend_strength", "min_win_rate",
                     "profit_lock_ratio", "first_loss_reduction",
                     "recovery_exit_ratio", "recovery_stake_cap_ratio"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value < 0 or value > 1:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a number between 0 and 1",
                        value=value
                    ))

        for name in ("max_daily_trades", "max_failed_sequences",
                     "sequence_lookback", "market_window"):
            if name in params:
                value = params[name]
                if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a positive integer",
                        value=value
                    ))

        if "recovery_mode" in params and params["recovery_mode"] not in RECOVERY_MODES:
            errors.append(ValidationError(
                field="recovery_mode",
                message=f"Must be one of {', '.join(RECOVERY_MODES)}",
                value=params["recovery_mode"]
            ))

        if "enable_sequence_protection" in params:
            value = params["enable_sequence_protection"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="enable_sequence_protection",
                    message="Must be a boolean",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_backoff_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate retry backoff parameters."""
        errors = []

        base = params.get("base_seconds")
        cap = params.get("max_seconds")
        if not _is_number(base) or base <= 0:
            errors.append(ValidationError(
                field="base_seconds",
                message="Must be a positive number",
                value=base
            ))
        if not _is_number(cap) or (_is_number(base) and cap < base):
            errors.append(ValidationError(
                field="max_seconds",
                message="Must be a number not below base_seconds",
                value=cap
            ))

        retries = params.get("max_retries")
        if not isinstance(retries, int) or isinstance(retries, bool) or retries < 0:
            errors.append(ValidationError(
                field="max_retries",
                message="Must be a non-negative integer",
                value=retries
            ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "stake_limits" in config:
            errors.extend(ConfigValidator.validate_stake_limits(config["stake_limits"]))

        if "recovery" in config:
            errors.extend(ConfigValidator.validate_recovery_params(config["recovery"]))

        if "backoff" in config:
            errors.extend(ConfigValidator.validate_backoff_params(config["backoff"]))

        return errors
