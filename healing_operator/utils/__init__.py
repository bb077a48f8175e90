"""Utility modules for the operator."""
from .config import Config, get_config, load_config
from .helpers import build_deployment_name, build_service_name, build_labels, parse_csv

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "build_deployment_name",
    "build_service_name",
    "build_labels",
    "parse_csv",
]
