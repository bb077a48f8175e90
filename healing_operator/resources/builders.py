"""Desired-state compiler: NginxDeployment spec -> child manifests.

``compile_children`` is pure: the same owner and spec always produce equal
manifests, which is what lets the reconciler detect "already converged".
"""
from typing import Any, Dict, Mapping, NamedTuple

import kopf

from ..models.spec import NginxDeploymentSpec
from ..utils.helpers import build_deployment_name, build_labels, build_service_name

CONTAINER_NAME = "nginx"
PROBE_PATH = "/"
LIVENESS_INITIAL_DELAY = 15
READINESS_INITIAL_DELAY = 5
PROBE_TIMEOUT = 5


class ChildResources(NamedTuple):
    deployment: Dict[str, Any]
    service: Dict[str, Any]


def _http_probe(port: int, initial_delay: int) -> Dict[str, Any]:
    return {
        "httpGet": {"path": PROBE_PATH, "port": port},
        "initialDelaySeconds": initial_delay,
        "timeoutSeconds": PROBE_TIMEOUT,
    }


def build_deployment(name: str, namespace: str, spec: NginxDeploymentSpec) -> Dict[str, Any]:
    labels = build_labels(name)
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": build_deployment_name(name),
            "namespace": namespace,
            "labels": dict(labels),
        },
        "spec": {
            "replicas": spec.replicas,
            "selector": {"matchLabels": dict(labels)},
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {
                    "containers": [{
                        "name": CONTAINER_NAME,
                        "image": spec.image,
                        "ports": [{"containerPort": spec.port}],
                        "livenessProbe": _http_probe(spec.port, LIVENESS_INITIAL_DELAY),
                        "readinessProbe": _http_probe(spec.port, READINESS_INITIAL_DELAY),
                    }],
                },
            },
        },
    }


def build_service(name: str, namespace: str, spec: NginxDeploymentSpec) -> Dict[str, Any]:
    labels = build_labels(name)
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {
            "name": build_service_name(name),
            "namespace": namespace,
            "labels": dict(labels),
        },
        "spec": {
            "type": "ClusterIP",
            "selector": dict(labels),
            "ports": [{"port": spec.port, "targetPort": spec.port}],
        },
    }


def compile_children(owner: Mapping[str, Any], spec: NginxDeploymentSpec) -> ChildResources:
    """Compile the Deployment and Service owned by ``owner``.

    ``owner`` is the parent body (apiVersion, kind, metadata.name/namespace/uid);
    both children carry a controller owner reference to it so the API server
    garbage-collects them when the parent is deleted.
    """
    name = owner["metadata"]["name"]
    namespace = owner["metadata"]["namespace"]

    children = ChildResources(
        deployment=build_deployment(name, namespace, spec),
        service=build_service(name, namespace, spec),
    )
    kopf.append_owner_reference(list(children), owner=owner)
    return children
