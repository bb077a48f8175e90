"""Child resource definitions compiled from NginxDeployment specs."""
from .builders import ChildResources, compile_children, build_deployment, build_service

__all__ = ["ChildResources", "compile_children", "build_deployment", "build_service"]
