"""Upload strategies."""
from .transport import TransportStrategy, select_strategy, RESUMABLE_THRESHOLD

__all__ = ['TransportStrategy', 'select_strategy', 'RESUMABLE_THRESHOLD']
