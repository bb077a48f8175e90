"""Helper utility functions."""
from typing import Dict, List, Optional

DEPLOYMENT_SUFFIX = "-deployment"
SERVICE_SUFFIX = "-service"


def build_deployment_name(parent_name: str) -> str:
    """Name of the Deployment owned by a parent."""
    return f"{parent_name}{DEPLOYMENT_SUFFIX}"


def build_service_name(parent_name: str) -> str:
    """Name of the Service owned by a parent."""
    return f"{parent_name}{SERVICE_SUFFIX}"


def build_labels(parent_name: str) -> Dict[str, str]:
    """Labels and selector keyed by the parent's name."""
    return {"app": parent_name}


def parse_csv(value: Optional[str]) -> List[str]:
    """Parse comma-separated string into a list."""
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]
