"""API clients used by the operator."""
from .kubernetes import KubernetesClient

__all__ = ["KubernetesClient"]
