"""Per-session line state."""

from .state import IDLE, Collecting, Idle, LastError, SessionState, Step, feed_line

__all__ = ["Collecting", "IDLE", "Idle", "LastError", "SessionState", "Step", "feed_line"]
