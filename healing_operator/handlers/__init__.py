"""Handler modules for Kopf events."""
from .nginxdeployment import register_handlers
from .startup import configure_operator, start_healer, stop_healer

__all__ = ["register_handlers", "configure_operator", "start_healer", "stop_healer"]
