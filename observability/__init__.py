"""Event logging, node spans and the admin CLI for assessment sessions."""
from .logger import describe, log_event, session_mode
from .tracing import Traced, span

__all__ = ["Traced", "describe", "log_event", "session_mode", "span"]
