"""Pytest configuration and fixtures for the test suite."""
import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from unittest.mock import Mock

import pytest
from kubernetes.client.rest import ApiException

from healing_operator.models import ContainerState, PodCondition, PodPhase, PodSnapshot
from healing_operator.utils.config import Config

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeCluster:
    """In-memory stand-in for KubernetesClient, keyed by (namespace, name)."""

    def __init__(self):
        self.parents: Dict[tuple, Dict[str, Any]] = {}
        self.deployments: Dict[tuple, Dict[str, Any]] = {}
        self.services: Dict[tuple, Dict[str, Any]] = {}
        self.pods = set()
        self._version = 0

    def _stamp(self, body):
        self._version += 1
        stored = copy.deepcopy(body)
        stored['metadata']['resourceVersion'] = str(self._version)
        return stored

    def get_nginxdeployment(self, namespace, name):
        found = self.parents.get((namespace, name))
        return copy.deepcopy(found) if found else None

    def patch_nginxdeployment_status(self, namespace, name, status):
        parent = self.parents.get((namespace, name))
        if parent is None:
            raise ApiException(status=404, reason="NotFound")
        parent.setdefault('status', {}).update(status)
        return copy.deepcopy(parent)

    def get_deployment(self, namespace, name) -> Optional[Dict[str, Any]]:
        found = self.deployments.get((namespace, name))
        return copy.deepcopy(found) if found else None

    def create_deployment(self, namespace, body):
        key = (namespace, body['metadata']['name'])
        if key in self.deployments:
            raise ApiException(status=409, reason="AlreadyExists")
        self.deployments[key] = self._stamp(body)
        return copy.deepcopy(self.deployments[key])

    def replace_deployment(self, namespace, name, body):
        current = self.deployments.get((namespace, name))
        if current is None:
            raise ApiException(status=404, reason="NotFound")
        if body['metadata'].get('resourceVersion') != current['metadata']['resourceVersion']:
            raise ApiException(status=409, reason="Conflict")
        stored = self._stamp(body)
        stored['status'] = current.get('status', {})
        self.deployments[(namespace, name)] = stored
        return copy.deepcopy(stored)

    def set_available(self, namespace, name, available):
        self.deployments[(namespace, name)]['status'] = {'availableReplicas': available}

    def get_service(self, namespace, name):
        found = self.services.get((namespace, name))
        return copy.deepcopy(found) if found else None

    def create_service(self, namespace, body):
        key = (namespace, body['metadata']['name'])
        if key in self.services:
            raise ApiException(status=409, reason="AlreadyExists")
        self.services[key] = self._stamp(body)
        return copy.deepcopy(self.services[key])

    def delete_pod(self, namespace, name):
        if (namespace, name) not in self.pods:
            raise ApiException(status=404, reason="NotFound")
        self.pods.discard((namespace, name))

    def pod_list_func(self, namespace=None):
        return Mock(name="list_pods"), ({"namespace": namespace} if namespace else {})


@pytest.fixture
def test_config(monkeypatch):
    """Test configuration."""
    monkeypatch.delenv("KUBECONFIG", raising=False)
    return Config(
        resync_interval=5,
        watch_max_retries=2,
        watch_backoff_base=0.001,
        watch_backoff_max=0.01,
    )


@pytest.fixture
def cluster():
    return FakeCluster()


@pytest.fixture
def mock_k8s_client(cluster):
    """KubernetesClient mock recording calls against an in-memory cluster."""
    return Mock(wraps=cluster)


@pytest.fixture
def sample_nginxdeployment():
    """Complete NginxDeployment CR."""
    return {
        "apiVersion": "web.example.com/v1",
        "kind": "NginxDeployment",
        "metadata": {
            "name": "web",
            "namespace": "default",
            "uid": "test-uid-123",
        },
        "spec": {
            "replicas": 3,
            "port": 8080,
            "image": "app:v1",
        },
    }


def make_pod(
    name: str = "web-1",
    namespace: str = "default",
    phase: PodPhase = PodPhase.RUNNING,
    age: timedelta = timedelta(minutes=1),
    restarts: int = 0,
    waiting_reason: Optional[str] = None,
    ready: Optional[str] = "True",
    ready_for: Optional[timedelta] = timedelta(minutes=1),
    annotations: Optional[Dict[str, str]] = None,
) -> PodSnapshot:
    """Build a pod snapshot relative to NOW."""
    conditions = []
    if ready is not None:
        conditions.append(PodCondition(
            type="Ready",
            status=ready,
            last_transition_time=NOW - ready_for if ready_for is not None else None,
        ))
    return PodSnapshot(
        namespace=namespace,
        name=name,
        creation_timestamp=NOW - age,
        phase=phase,
        container_statuses=[ContainerState(name="app", restart_count=restarts, waiting_reason=waiting_reason)],
        conditions=conditions,
        annotations=annotations or {},
    )
