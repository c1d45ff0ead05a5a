"""Structured logging for ladder backtester."""

from ladder_backtester.logging.logger import get_logger, setup_logging, LoggerMixin, log_context

__all__ = ["get_logger", "setup_logging", "LoggerMixin", "log_context"]
