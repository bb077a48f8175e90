"""Pod health classification and remediation."""
from .classifier import Verdict, Thresholds, classify
from .policy import Action, HealingPolicy, should_evaluate, decide
from .executor import RemediationExecutor

__all__ = [
    "Verdict",
    "Thresholds",
    "classify",
    "Action",
    "HealingPolicy",
    "should_evaluate",
    "decide",
    "RemediationExecutor",
]
