"""
Session controller.

Drives one trading session from validation through the trade loop to the
final summary. The controller owns the running aggregate and both session
timers; it never places trades itself but asks the strategy dispatcher for
one settled trade per loop iteration.

Lifecycle: IDLE -> VALIDATING -> CONNECTING -> AUTHORIZING -> TRADING
-> STOPPING -> IDLE.
"""

import asyncio
from dataclasses import asdict
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

import structlog

from ..collaborators import AccountProvider, Connector, Executor, MessagingSink, TradeStorage
from ..config.defaults import DefaultConfig, get_default_config
from ..config.validation import ConfigValidator
from ..dispatcher import StrategyDispatcher
from ..errors import (
    AccountUnavailableError,
    BrokerConnectionError,
    SessionPreconditionError,
    is_recoverable_error,
)
from ..events import EventChannel, StopRequest
from ..logging import get_session_logger, log_session_transition
from ..models.account import Account
from ..models.aggregate import RunningAggregate
from ..models.enums import NotificationAction, SessionState
from ..models.session import SessionConfig, TradingConfig
from ..models.trade import TradeResult
from ..notifications.base import Notification
from ..rewards import RewardCalculator
from ..strategies import StrategyDependencies, StrategyRegistry
from ..utils.time import utc_now
from .accounts import find_account_entry
from .summary import build_trading_summary, calculate_total_loss
from .timers import OneShotTimer, RepeatingTimer

logger = structlog.get_logger(__name__)

DispatcherFactory = Callable[[TradingConfig, EventChannel, StrategyDependencies], StrategyDispatcher]

SESSION_TIMEOUT_REASON = "Session duration elapsed"
NO_RESULT_REASON = "No trade result"
MANUAL_STOP_REASON = "Manual stop"


class SessionController:
    """Owns the lifecycle, statistics and stop conditions of a session."""

    def __init__(
        self,
        connector: Connector,
        account_provider: AccountProvider,
        executor: Executor,
        messaging: MessagingSink,
        storage: Optional[TradeStorage] = None,
        settings: Optional[DefaultConfig] = None,
        channel: Optional[EventChannel] = None,
        registry: Optional[StrategyRegistry] = None,
        reward_calculator: Optional[RewardCalculator] = None,
        dispatcher_factory: Optional[DispatcherFactory] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.connector = connector
        self.account_provider = account_provider
        self.executor = executor
        self.messaging = messaging
        self.storage = storage
        self.settings = settings or get_default_config()
        self.channel = channel or EventChannel()
        self.registry = registry
        self.reward_calculator = reward_calculator or RewardCalculator(stake_limits=self.settings.stake_limits)
        self._dispatcher_factory = dispatcher_factory or self._build_dispatcher
        self._sleep = sleep
        self._clock = clock
        self._audit = get_session_logger(__name__)

        self._session_timer = OneShotTimer("session_duration")
        self._telemetry_timer = RepeatingTimer("telemetry")

        self._state = SessionState.IDLE
        self._cached_config: Optional[SessionConfig] = None
        self._cached_context: tuple[str, str, int] = ("", "", 0)
        self._retry_attempt = 0
        self._account_token: Any = ""
        self._reset_session()

        self.channel.subscribe(StopRequest, self._on_stop_request)

    # --------------------------------------------------------------- views

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_trading(self) -> bool:
        return self._state == SessionState.TRADING

    @property
    def aggregate(self) -> RunningAggregate:
        return self._aggregate

    @property
    def session(self) -> Optional[SessionConfig]:
        return self._session

    @property
    def account(self) -> Optional[Account]:
        return self._account

    @property
    def deferred_stop(self) -> bool:
        return self._deferred_stop

    @property
    def trades(self) -> tuple[TradeResult, ...]:
        return tuple(self._trades)

    def get_state(self) -> dict[str, Any]:
        """Snapshot for dashboards and logs."""
        return {
            "state": self._state.value,
            "session_id": self._session_id,
            "session_seq": self._session_seq,
            "contract_type": self._session.contract_type if self._session else None,
            "deferred_stop": self._deferred_stop,
            "retry_attempt": self._retry_attempt,
            "aggregate": self._aggregate.to_dict(),
        }

    def calculate_total_loss(self) -> float:
        return calculate_total_loss(self._trades)

    # ----------------------------------------------------------- lifecycle

    async def start_trading(
        self,
        config: Optional[Mapping[str, Any]] = None,
        is_retry: bool = False,
        account_token: str = "",
        session_id: str = "",
        session_seq: int = 0,
    ) -> None:
        """
        Validate, connect, authorize and run a session to completion.

        Validation problems are reported through the messaging sink and do
        not raise. Runtime errors go through handle_trading_error().
        """
        if self._state == SessionState.TRADING and not is_retry:
            logger.warning("Start ignored, session already trading", session_id=self._session_id)
            return

        try:
            await self._run_session(config, is_retry, account_token, session_id, session_seq)
        except Exception as e:
            await self.handle_trading_error(e)

    async def _run_session(
        self,
        config: Optional[Mapping[str, Any]],
        is_retry: bool,
        account_token: str,
        session_id: str,
        session_seq: int,
    ) -> None:
        self._cancel_timers()
        self._reset_session()
        self._transition(SessionState.VALIDATING, "retry" if is_retry else "start")

        if is_retry:
            if self._cached_config is None:
                raise SessionPreconditionError(
                    "No cached session configuration to retry with",
                    current_state=self._state.value,
                )
            session = self._cached_config
            account_token, session_id, session_seq = self._cached_context
        else:
            session = self._validate(config)
            if session is None:
                self._transition(SessionState.IDLE, "validation_failed")
                return
            self._cached_config = session
            self._cached_context = (account_token, session_id, session_seq)

        self._session = session
        self._session_id = session_id
        self._session_seq = session_seq

        self._transition(SessionState.CONNECTING, "validated")
        if not await self.connector.ping():
            raise BrokerConnectionError("Broker did not answer ping")

        self._transition(SessionState.AUTHORIZING, "connected")
        if not account_token:
            self._notify(
                NotificationAction.ACCOUNT_REQUIRED,
                "Select a trading account to start trading.",
                {"account_type": session.account_type},
            )
            self._transition(SessionState.IDLE, "no_account")
            return

        account = await self.account_provider.get_user_account(account_token, self._on_balance_update)
        if account is None:
            raise AccountUnavailableError(
                f"No {session.account_type} account for the supplied token",
                account_type=session.account_type,
            )
        self._account = account
        self._account_token = account_token

        trading_config = TradingConfig(
            session=session,
            account_token=account_token,
            account=account,
            session_id=session_id,
        )
        deps = StrategyDependencies(
            executor=self.executor,
            reward_calculator=self.reward_calculator,
            settings=self.settings,
            sleep=self._sleep,
            clock=self._clock,
        )
        self._dispatcher = self._dispatcher_factory(trading_config, self.channel, deps)

        self._started_at = self._clock()
        self._session_timer.start(session.session_duration_seconds, self.handle_session_timeout)
        self._telemetry_timer.start(session.telemetry_interval_seconds, self.emit_telemetry)

        self._transition(SessionState.TRADING, "authorized")
        self._notify(
            NotificationAction.SESSION_STARTED,
            f"Trading started on {session.market} ({session.contract_type}), "
            f"stake {session.currency} {session.base_stake:.2f}, "
            f"take profit {session.take_profit:.2f}, stop loss {session.stop_loss:.2f}.",
            {"session_id": session_id, "session_seq": session_seq, "account": account.login_id},
        )

        await self.execute_trade_sequence()

    def _build_dispatcher(
        self,
        config: TradingConfig,
        channel: EventChannel,
        deps: StrategyDependencies,
    ) -> StrategyDispatcher:
        return StrategyDispatcher(config, channel, deps, registry=self.registry)

    def _validate(self, config: Optional[Mapping[str, Any]]) -> Optional[SessionConfig]:
        defaults = asdict(self.settings.session)
        raw = {**defaults, **{key: value for key, value in (config or {}).items() if value is not None}}

        errors = ConfigValidator.validate_session(raw)
        if errors:
            first = errors[0]
            logger.warning("Session validation failed", field=first.field,
                           message=first.message, value=first.value)
            self._notify(
                NotificationAction.VALIDATION_ERROR,
                first.message,
                {"field": first.field},
            )
            return None

        limits = self.settings.stake_limits
        return SessionConfig.from_mapping(raw, min_stake=limits.min_stake, max_stake=limits.max_stake)

    # ---------------------------------------------------------- trade loop

    async def execute_trade_sequence(self) -> None:
        """Trade one contract at a time until a stop condition holds."""
        while self._state == SessionState.TRADING:
            result = await self._dispatcher.execute_trade()

            if self._state != SessionState.TRADING:
                # Stopped directly while the trade was in flight
                break

            if result is None:
                request = self._pending_stop or StopRequest(
                    NO_RESULT_REASON, profit=self._aggregate.total_profit, source="controller"
                )
                await self.stop_trading(request.reason, True, request.to_meta())
                break

            self.process_trade_result(result)

            stop = self._evaluate_stop_conditions()
            if stop is not None:
                reason, meta = stop
                await self.stop_trading(reason, True, meta)
                break

            await asyncio.sleep(0)

    def process_trade_result(self, result: TradeResult) -> None:
        """Fold a settled trade into the aggregate and persist it."""
        self._aggregate = self._aggregate.with_trade(result)
        self._trades.append(result)
        self._retry_attempt = 0

        logger.info(
            "Trade processed",
            run=self._aggregate.runs,
            is_win=result.is_win,
            profit=result.signed_profit,
            total_profit=self._aggregate.total_profit,
            consecutive_losses=self._aggregate.consecutive_losses,
        )
        self._store_trade(result)

    def _store_trade(self, result: TradeResult) -> None:
        if self.storage is None:
            return
        try:
            self.storage.insert_trade(result, self._session_id)
        except Exception as e:
            logger.error("Failed to store trade", contract_id=result.contract_id,
                         error=str(e), error_type=type(e).__name__)

    def _evaluate_stop_conditions(self) -> Optional[tuple[str, dict[str, Any]]]:
        session = self._session
        total = self._aggregate.total_profit
        meta = {"profit": total, "runs": self._aggregate.runs}

        if total >= session.take_profit:
            return f"Take profit reached ({total:.2f})", meta

        if total <= -session.stop_loss:
            return f"Stop loss triggered ({total:.2f})", meta

        if self._pending_stop is not None:
            return self._pending_stop.reason, self._pending_stop.to_meta()

        if self._deferred_stop and not self._dispatcher.check_pending_recovery():
            logger.info("Recovery finished, honouring deferred stop", total_profit=total)
            return SESSION_TIMEOUT_REASON, {**meta, "deferred": True}

        return None

    # ------------------------------------------------------ stop requests

    def _on_stop_request(self, request: StopRequest) -> None:
        if self._state != SessionState.TRADING:
            logger.debug("Stop request ignored, not trading", reason=request.reason)
            return
        if self._pending_stop is None:
            self._pending_stop = request
            logger.info("Stop requested", reason=request.reason, source=request.source)

    def request_stop(self, reason: str = MANUAL_STOP_REASON) -> None:
        """Ask the running session to stop after the trade in flight."""
        self.channel.publish(StopRequest(
            reason=reason,
            profit=self._aggregate.total_profit,
            source="manual",
        ))

    def handle_session_timeout(self) -> None:
        """Session-duration timer callback."""
        if self._state != SessionState.TRADING:
            return

        if self._dispatcher is not None and self._dispatcher.check_pending_recovery():
            self._deferred_stop = True
            logger.info("Session duration elapsed during recovery, deferring stop",
                        total_profit=self._aggregate.total_profit)
            return

        self.channel.publish(StopRequest(
            reason=SESSION_TIMEOUT_REASON,
            profit=self._aggregate.total_profit,
            source="session_timer",
        ))

    def emit_telemetry(self) -> None:
        """Telemetry timer callback."""
        summary = self.generate_trading_summary()
        if summary is not None:
            self._notify(NotificationAction.TRADING_SUMMARY, summary,
                         {"session_id": self._session_id, "runs": self._aggregate.runs})

    def generate_trading_summary(self) -> Optional[str]:
        """Summary text, or None before any stake has been placed."""
        if self._session is None or self._aggregate.total_stake <= 0:
            return None
        return build_trading_summary(
            self._aggregate, self._session, self._account, self._started_at, self._clock()
        )

    async def stop_trading(
        self,
        reason: str = MANUAL_STOP_REASON,
        emit_statistics: bool = True,
        meta: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        End the session. No-op unless trading.

        Cancels both timers, optionally attaches the final summary, notifies
        the messaging sink once and discards all session state.
        """
        if self._state != SessionState.TRADING:
            logger.debug("Stop ignored, not trading", reason=reason, state=self._state.value)
            return

        self._transition(SessionState.STOPPING, reason)
        self._cancel_timers()

        text = f"Trading stopped: {reason}"
        notification_meta = {"reason": reason, "session_id": self._session_id, **(meta or {})}
        if emit_statistics:
            summary = self.generate_trading_summary()
            if summary is not None:
                text = f"{text}\n\n{summary}"
            notification_meta["total_profit"] = self._aggregate.total_profit
            notification_meta["runs"] = self._aggregate.runs

        self._notify(NotificationAction.SESSION_STOPPED, text, notification_meta)

        self._reset_session()
        self._cached_config = None
        self._cached_context = ("", "", 0)
        self._transition(SessionState.IDLE, "stopped")

    # ------------------------------------------------------ error handling

    def calculate_backoff(self, attempt: int) -> float:
        """Seconds to wait before retry number attempt (0-based)."""
        backoff = self.settings.backoff
        return min(backoff.base_seconds * (2 ** attempt), backoff.max_seconds)

    async def handle_trading_error(self, error: Exception) -> None:
        """Retry recoverable errors with backoff; stop on anything else."""
        backoff = self.settings.backoff

        if is_recoverable_error(error) and self._retry_attempt < backoff.max_retries:
            delay = self.calculate_backoff(self._retry_attempt)
            self._retry_attempt += 1
            logger.warning(
                "Recoverable session error, retrying",
                error=str(error),
                error_type=type(error).__name__,
                attempt=self._retry_attempt,
                delay_seconds=delay,
            )
            self._cancel_timers()
            self._transition(SessionState.IDLE, "retry_backoff")
            await self._sleep(delay)
            await self.start_trading(is_retry=True)
            return

        logger.error(
            "Fatal session error",
            error=str(error),
            error_type=type(error).__name__,
            recoverable=is_recoverable_error(error),
            attempts=self._retry_attempt,
        )
        self._retry_attempt = 0
        message = f"Trading error: {error}"
        meta = {"error_type": type(error).__name__}

        if self._state == SessionState.TRADING:
            await self.stop_trading(message, emit_statistics=False, meta=meta)
            return

        self._notify(NotificationAction.ERROR, message, meta)
        self._cancel_timers()
        self._reset_session()
        self._cached_config = None
        self._transition(SessionState.IDLE, "fatal_error")

    # -------------------------------------------------------------- account

    def get_account_token(
        self,
        accounts: Sequence[Mapping[str, Any]],
        key: str,
        value: Any,
    ) -> Optional[Mapping[str, Any]]:
        """Find the account entry whose key (acct, cur or token) equals value."""
        entry = find_account_entry(accounts, key, value)
        if entry is not None:
            # TODO: this stores the whole entry rather than entry["token"];
            # confirm what callers of account_token expect before changing it.
            self._account_token = entry
        return entry

    @property
    def account_token(self) -> Any:
        return self._account_token

    def _on_balance_update(self, balance: float) -> None:
        if self._account is not None:
            self._account = self._account.with_balance(balance)
            if self._dispatcher is not None:
                self._dispatcher.update_account(self._account)
            logger.debug("Balance updated", balance=balance)

    # -------------------------------------------------------------- helpers

    def _notify(self, action: NotificationAction, text: str, meta: Optional[dict[str, Any]] = None) -> None:
        notification = Notification(action=action.value, text=text, meta=meta or {})
        try:
            self.messaging.deliver(notification)
        except Exception as e:
            logger.error("Messaging sink failed", action=action.value,
                         error=str(e), error_type=type(e).__name__)

    def _transition(self, to_state: SessionState, trigger: str) -> None:
        from_state = self._state
        self._state = to_state
        log_session_transition(
            self._audit,
            self._session_id,
            from_state.value,
            to_state.value,
            trigger,
        )

    def _cancel_timers(self) -> None:
        self._session_timer.cancel()
        self._telemetry_timer.cancel()

    def _reset_session(self) -> None:
        """Swap in blank per-session state; the retry cache is untouched."""
        self._session: Optional[SessionConfig] = None
        self._session_id = ""
        self._session_seq = 0
        self._account: Optional[Account] = None
        self._dispatcher: Optional[StrategyDispatcher] = None
        self._aggregate = RunningAggregate()
        self._trades: list[TradeResult] = []
        self._pending_stop: Optional[StopRequest] = None
        self._deferred_stop = False
        self._started_at: Optional[datetime] = None
