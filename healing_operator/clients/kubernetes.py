"""
Kubernetes API client wrapper for the operator.
"""
from typing import Any, Callable, Dict, Optional, Tuple

from kubernetes import client
from kubernetes.client.rest import ApiException
from loguru import logger

from ..models.spec import GROUP, PLURAL, VERSION
from ..utils.config import Config, get_config


class KubernetesClient:
    """Client wrapper for the Kubernetes API operations both loops need.

    Reads return plain manifest dicts (camelCase keys, as served by the API)
    or ``None`` when the object does not exist. Writes raise ``ApiException``
    so callers can tell conflicts from other failures.
    """

    def __init__(self, config: Optional[Config] = None, api_client: Optional[client.ApiClient] = None):
        """Initialize the Kubernetes client. Credentials must already be loaded."""
        self.config = config or get_config()
        self.timeout = self.config.request_timeout

        self.api_client = api_client or client.ApiClient()
        self.core_v1 = client.CoreV1Api(self.api_client)
        self.apps_v1 = client.AppsV1Api(self.api_client)
        self.custom_objects = client.CustomObjectsApi(self.api_client)

    def _to_dict(self, obj: Any) -> Dict[str, Any]:
        return self.api_client.sanitize_for_serialization(obj)

    def _read(self, read_func: Callable[..., Any], namespace: str, name: str) -> Optional[Dict[str, Any]]:
        try:
            return self._to_dict(read_func(name, namespace, _request_timeout=self.timeout))
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    # Parents

    def get_nginxdeployment(self, namespace: str, name: str) -> Optional[Dict[str, Any]]:
        try:
            return self.custom_objects.get_namespaced_custom_object(
                GROUP, VERSION, namespace, PLURAL, name, _request_timeout=self.timeout
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def patch_nginxdeployment_status(self, namespace: str, name: str, status: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"Patching status of NginxDeployment {namespace}/{name}")
        return self.custom_objects.patch_namespaced_custom_object_status(
            GROUP, VERSION, namespace, PLURAL, name, {"status": status}, _request_timeout=self.timeout
        )

    # Workload children

    def get_deployment(self, namespace: str, name: str) -> Optional[Dict[str, Any]]:
        return self._read(self.apps_v1.read_namespaced_deployment, namespace, name)

    def create_deployment(self, namespace: str, body: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"Creating Deployment {namespace}/{body['metadata']['name']}")
        return self._to_dict(self.apps_v1.create_namespaced_deployment(
            namespace, body, _request_timeout=self.timeout
        ))

    def replace_deployment(self, namespace: str, name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """Replace a Deployment; a stale resourceVersion in ``body`` fails with 409."""
        logger.debug(f"Replacing Deployment {namespace}/{name}")
        return self._to_dict(self.apps_v1.replace_namespaced_deployment(
            name, namespace, body, _request_timeout=self.timeout
        ))

    # Network-endpoint children

    def get_service(self, namespace: str, name: str) -> Optional[Dict[str, Any]]:
        return self._read(self.core_v1.read_namespaced_service, namespace, name)

    def create_service(self, namespace: str, body: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"Creating Service {namespace}/{body['metadata']['name']}")
        return self._to_dict(self.core_v1.create_namespaced_service(
            namespace, body, _request_timeout=self.timeout
        ))

    # Pods

    def delete_pod(self, namespace: str, name: str) -> None:
        self.core_v1.delete_namespaced_pod(name, namespace, _request_timeout=self.timeout)

    def pod_list_func(self, namespace: Optional[str] = None) -> Tuple[Callable[..., Any], Dict[str, Any]]:
        """List function and its arguments for watching pods in one or all namespaces."""
        if namespace:
            return self.core_v1.list_namespaced_pod, {"namespace": namespace}
        return self.core_v1.list_pod_for_all_namespaces, {}
