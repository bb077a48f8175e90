"""Healing Operator: pod healer and NginxDeployment reconciler."""

__version__ = "0.1.0"
