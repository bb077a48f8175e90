"""Typed change notifications delivered by the watch cache."""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class EventType(str, Enum):
    ADDED = "Added"
    UPDATED = "Updated"


@dataclass(frozen=True)
class WatchEvent(Generic[T]):
    type: EventType
    object: T
