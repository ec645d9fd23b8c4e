"""Tests for the logging helpers."""

from unittest.mock import Mock

from digitbot.logging import configure_logging, get_session_logger, get_strategy_logger
from digitbot.logging import log_session_transition, log_trade_decision


class TestAuditHelpers:
    """Test the standardized audit log helpers."""

    def setup_method(self):
        """Set up a mock logger whose bind() returns itself."""
        self.logger = Mock()
        self.logger.bind.return_value = self.logger

    def test_session_transition(self):
        """Test transitions are bound with from/to state and trigger."""
        log_session_transition(self.logger, "s-1", "idle", "validating", "start")

        self.logger.bind.assert_called_once_with(
            session_id="s-1", from_state="idle", to_state="validating", trigger="start",
        )
        self.logger.info.assert_called_once_with("Session transition")

    def test_session_transition_with_context(self):
        """Test extra context is bound separately."""
        log_session_transition(self.logger, "s-1", "trading", "stopping", "stop", {"runs": 3})

        assert self.logger.bind.call_count == 2
        self.logger.bind.assert_called_with(context={"runs": 3})

    def test_trade_decision_cleared(self):
        """Test cleared trades log at info."""
        log_trade_decision(self.logger, True, "Trade conditions met", stake=1.0)

        self.logger.bind.assert_called_once_with(decision="TRADE", reason="Trade conditions met", stake=1.0)
        self.logger.info.assert_called_once_with("Trade decision")
        self.logger.warning.assert_not_called()

    def test_trade_decision_refused(self):
        """Test refusals log at warning."""
        log_trade_decision(self.logger, False, "Daily trade limit reached")

        self.logger.warning.assert_called_once_with("Trade refused")
        self.logger.info.assert_not_called()


class TestLoggerFactories:
    """Test audit logger construction."""

    def test_configure_and_bind(self):
        """Test audit loggers carry their subsystem after configuration."""
        configure_logging(level="DEBUG", format_json=True)

        session_logger = get_session_logger(__name__)
        strategy_logger = get_strategy_logger(__name__, contract_type="DIGITDIFF")

        assert session_logger._context["subsystem"] == "session"
        assert session_logger._context["audit_trail"] is True
        assert strategy_logger._context["subsystem"] == "strategy"
        assert strategy_logger._context["contract_type"] == "DIGITDIFF"
