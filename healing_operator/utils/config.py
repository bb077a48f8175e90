"""Configuration management for the operator."""
import functools
from typing import List, Optional

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..errors import ConfigurationError
from .helpers import parse_csv


class Config(BaseSettings):
    """Configuration settings for the Healing Operator."""

    # Kubernetes credentials
    in_cluster: bool = Field(default=False, description="Use the in-cluster service account")
    kubeconfig: Optional[str] = Field(default=None, description="Path to a kubeconfig file")
    request_timeout: float = Field(default=30.0, gt=0, description="Timeout of every API call, seconds")

    # Health thresholds (durations in seconds)
    pending_threshold: float = Field(default=15 * 60, ge=0)
    restart_threshold: int = Field(default=10, ge=0)
    not_ready_threshold: float = Field(default=10 * 60, ge=0)

    # Watch / resync
    resync_interval: float = Field(default=30.0, gt=0)
    watch_namespace: Optional[str] = Field(default=None, description="Heal only this namespace")
    watch_max_retries: int = Field(default=5, ge=0)
    watch_backoff_base: float = Field(default=1.0, gt=0)
    watch_backoff_max: float = Field(default=30.0, gt=0)

    # Healing policy
    system_namespaces: str = Field(default="kube-system", description="Comma-separated namespaces never healed")
    annotation_prefix: str = Field(default="healing")
    healer_workers: int = Field(default=4, ge=1)
    dry_run: bool = Field(default=False)

    # Operator
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @model_validator(mode="after")
    def check_credentials(self) -> "Config":
        if self.in_cluster and self.kubeconfig:
            raise ValueError("in_cluster and kubeconfig are mutually exclusive")
        return self

    @property
    def reserved_namespaces(self) -> List[str]:
        return parse_csv(self.system_namespaces)


def load_config(**overrides) -> Config:
    """Load configuration, turning validation failures into ConfigurationError."""
    try:
        return Config(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


@functools.lru_cache(maxsize=None)
def get_config() -> Config:
    """Process-wide configuration, loaded once and shared by every component."""
    return load_config()
