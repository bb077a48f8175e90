"""Pydantic models for NginxDeployment specifications."""
from pydantic import BaseModel, Field, field_validator

GROUP = "web.example.com"
VERSION = "v1"
PLURAL = "nginxdeployments"
KIND = "NginxDeployment"

DEFAULT_PORT = 80
DEFAULT_IMAGE = "nginx:latest"


class NginxDeploymentSpec(BaseModel):
    """Specification for NginxDeployment custom resource.

    Unset or malformed optional fields fall back to their defaults instead of
    failing validation; only ``replicas`` is mandatory.
    """

    replicas: int = Field(..., ge=0, description="Number of nginx replicas")
    port: int = Field(DEFAULT_PORT, ge=1, le=65535, description="Port for nginx container")
    image: str = Field(DEFAULT_IMAGE, description="Container image for nginx")

    @field_validator('port', mode='before')
    @classmethod
    def default_port(cls, v):
        if v is None or isinstance(v, bool):
            return DEFAULT_PORT
        try:
            port = int(v)
        except (TypeError, ValueError):
            return DEFAULT_PORT
        if not 1 <= port <= 65535:
            return DEFAULT_PORT
        return port

    @field_validator('image', mode='before')
    @classmethod
    def default_image(cls, v):
        if not isinstance(v, str) or not v.strip():
            return DEFAULT_IMAGE
        return v.strip()
