"""Watch cache and its typed events."""
from .events import EventType, WatchEvent
from .cache import WatchCache

__all__ = ["EventType", "WatchEvent", "WatchCache"]
