"""Health classification of pod snapshots.

``classify`` is a pure function of a snapshot and the current time. It keeps no
memory between calls, so duplicate or missed watch events cannot skew the
verdict.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from loguru import logger

from ..models.pod import CRASH_LOOP_BACK_OFF, READY_CONDITION, PodPhase, PodSnapshot


class Verdict(str, Enum):
    HEALTHY = "Healthy"
    STUCK_PENDING = "StuckPending"
    STUCK_CRASH_LOOP = "StuckCrashLoop"
    STUCK_NOT_READY = "StuckNotReady"


@dataclass(frozen=True)
class Thresholds:
    """Limits past which a pod is considered stuck."""

    pending: timedelta = timedelta(minutes=15)
    restarts: int = 10
    not_ready: timedelta = timedelta(minutes=10)

    @classmethod
    def from_config(cls, config) -> "Thresholds":
        return cls(
            pending=timedelta(seconds=config.pending_threshold),
            restarts=config.restart_threshold,
            not_ready=timedelta(seconds=config.not_ready_threshold),
        )


def classify(pod: PodSnapshot, now: datetime, thresholds: Thresholds = Thresholds()) -> Verdict:
    """Classify a pod; the first matching rule wins."""
    ref = f"{pod.namespace}/{pod.name}"

    if pod.phase == PodPhase.PENDING and pod.creation_timestamp is not None:
        pending_for = now - pod.creation_timestamp
        if pending_for > thresholds.pending:
            logger.info(f"Pod {ref} stuck in Pending for {pending_for}")
            return Verdict.STUCK_PENDING

    if pod.phase == PodPhase.RUNNING:
        for container in pod.container_statuses:
            if container.restart_count > thresholds.restarts:
                logger.info(f"Pod {ref} container {container.name} restarted {container.restart_count} times")
                return Verdict.STUCK_CRASH_LOOP
        for container in pod.container_statuses:
            if container.waiting_reason == CRASH_LOOP_BACK_OFF:
                logger.info(f"Pod {ref} container {container.name} in {CRASH_LOOP_BACK_OFF}")
                return Verdict.STUCK_CRASH_LOOP

    # A pod that has not reported a timestamped Ready=False is never stuck here.
    if not pod.is_ready():
        for condition in pod.conditions:
            if condition.type != READY_CONDITION or condition.status != "False":
                continue
            if condition.last_transition_time is None:
                continue
            not_ready_for = now - condition.last_transition_time
            if not_ready_for > thresholds.not_ready:
                logger.info(f"Pod {ref} not ready for {not_ready_for}")
                return Verdict.STUCK_NOT_READY

    return Verdict.HEALTHY
