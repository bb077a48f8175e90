"""Remediation policy: which pods are evaluated and what happens to stuck ones."""
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet

from loguru import logger

from ..models.pod import PodSnapshot
from .classifier import Verdict


class Action(str, Enum):
    DELETE = "Delete"
    CUSTOM_RESTART = "CustomRestart"
    CUSTOM_DELETE = "CustomDelete"
    SKIP = "Skip"


CUSTOM_ACTIONS = {
    "restart": Action.CUSTOM_RESTART,
    "delete": Action.CUSTOM_DELETE,
    "ignore": Action.SKIP,
}


@dataclass(frozen=True)
class HealingPolicy:
    """Namespace exclusions and the annotation contract."""

    system_namespaces: FrozenSet[str] = field(default_factory=lambda: frozenset({"kube-system"}))
    annotation_prefix: str = "healing"

    @property
    def ignore_annotation(self) -> str:
        return f"{self.annotation_prefix}/ignore"

    @property
    def action_annotation(self) -> str:
        return f"{self.annotation_prefix}/action"

    @classmethod
    def from_config(cls, config) -> "HealingPolicy":
        return cls(
            system_namespaces=frozenset(config.reserved_namespaces),
            annotation_prefix=config.annotation_prefix,
        )


def should_evaluate(pod: PodSnapshot, policy: HealingPolicy = HealingPolicy()) -> bool:
    """Pre-filter applied before classification."""
    if pod.namespace in policy.system_namespaces:
        return False
    # Already being deleted.
    if pod.is_terminating:
        return False
    if policy.ignore_annotation in pod.annotations:
        return False
    return True


def decide(pod: PodSnapshot, verdict: Verdict, policy: HealingPolicy = HealingPolicy()) -> Action:
    """Map a verdict and the pod's annotations to exactly one action."""
    if verdict == Verdict.HEALTHY:
        return Action.SKIP
    if policy.ignore_annotation in pod.annotations:
        return Action.SKIP

    requested = pod.annotations.get(policy.action_annotation)
    if requested is None:
        return Action.DELETE

    action = CUSTOM_ACTIONS.get(requested.strip().lower(), Action.DELETE)
    if action == Action.SKIP:
        logger.info(f"Skipping healing for pod {pod.namespace}/{pod.name} due to ignore annotation")
    elif action == Action.DELETE:
        logger.warning(f"Unknown healing action '{requested}' on pod {pod.namespace}/{pod.name}, deleting")
    return action
