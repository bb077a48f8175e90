"""Data models for the Healing Operator."""
from .spec import NginxDeploymentSpec, DEFAULT_PORT, DEFAULT_IMAGE, GROUP, VERSION, PLURAL, KIND
from .status import NginxDeploymentStatus, derive_status
from .pod import PodSnapshot, PodPhase, ContainerState, PodCondition

__all__ = [
    "NginxDeploymentSpec",
    "DEFAULT_PORT",
    "DEFAULT_IMAGE",
    "GROUP",
    "VERSION",
    "PLURAL",
    "KIND",
    "NginxDeploymentStatus",
    "derive_status",
    "PodSnapshot",
    "PodPhase",
    "ContainerState",
    "PodCondition",
]
