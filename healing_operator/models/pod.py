"""Typed snapshot of a watched pod."""
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from kubernetes.client import V1Pod
from pydantic import BaseModel, ConfigDict, Field

READY_CONDITION = "Ready"
CRASH_LOOP_BACK_OFF = "CrashLoopBackOff"


class PodPhase(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PodPhase":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class ContainerState(BaseModel):
    """Restart bookkeeping for a single container."""

    model_config = ConfigDict(frozen=True)

    name: str
    restart_count: int = Field(0, ge=0)
    waiting_reason: Optional[str] = None


class PodCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    status: str = "Unknown"
    last_transition_time: Optional[datetime] = None


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PodSnapshot(BaseModel):
    """Immutable view of the pod fields the healer cares about."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str
    creation_timestamp: Optional[datetime] = None
    phase: PodPhase = PodPhase.UNKNOWN
    container_statuses: List[ContainerState] = Field(default_factory=list)
    conditions: List[PodCondition] = Field(default_factory=list)
    annotations: Dict[str, str] = Field(default_factory=dict)
    deletion_timestamp: Optional[datetime] = None

    @property
    def key(self) -> Tuple[str, str]:
        return self.namespace, self.name

    @property
    def is_terminating(self) -> bool:
        return self.deletion_timestamp is not None

    def is_ready(self) -> bool:
        """Check if the pod reports Ready=True."""
        return any(c.type == READY_CONDITION and c.status == "True" for c in self.conditions)

    @classmethod
    def from_api(cls, pod: V1Pod) -> "PodSnapshot":
        """Build a snapshot from a kubernetes client V1Pod, defaulting absent fields."""
        metadata = pod.metadata
        status = pod.status

        containers = []
        for cs in (status.container_statuses if status else None) or []:
            state = cs.state
            waiting = state.waiting if state else None
            containers.append(ContainerState(
                name=cs.name,
                restart_count=cs.restart_count or 0,
                waiting_reason=waiting.reason if waiting else None,
            ))

        conditions = [
            PodCondition(
                type=c.type,
                status=c.status or "Unknown",
                last_transition_time=as_utc(c.last_transition_time),
            )
            for c in (status.conditions if status else None) or []
        ]

        return cls(
            namespace=metadata.namespace or "",
            name=metadata.name,
            creation_timestamp=as_utc(metadata.creation_timestamp),
            phase=PodPhase.parse(status.phase if status else None),
            container_statuses=containers,
            conditions=conditions,
            annotations=dict(metadata.annotations or {}),
            deletion_timestamp=as_utc(metadata.deletion_timestamp),
        )
