"""Pydantic models for NginxDeployment status."""
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field

READY = "Ready"


def derive_status(available: int, desired: int) -> str:
    """Human-readable status string for the parent."""
    if available == desired:
        return READY
    return f"Available: {available}/{desired}"


class NginxDeploymentStatus(BaseModel):
    """Status of NginxDeployment custom resource."""

    availableReplicas: int = Field(0, description="Number of available replicas")
    status: str = Field("", description="Status message")

    @classmethod
    def project(cls, available: Optional[int], desired: int) -> "NginxDeploymentStatus":
        """Build the status from the workload's observed available replicas."""
        available = available or 0
        return cls(availableReplicas=available, status=derive_status(available, desired))

    def differs_from(self, current: Optional[Mapping[str, Any]]) -> bool:
        """Whether writing this status would change the parent's status."""
        current = current or {}
        return (
            current.get('availableReplicas') != self.availableReplicas or
            current.get('status') != self.status
        )

    def to_patch(self) -> Dict[str, Any]:
        return self.model_dump()
