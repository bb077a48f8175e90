"""Reconciliation logic for NginxDeployment resources."""
import asyncio
import copy
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import kopf
from kubernetes.client.rest import ApiException
from loguru import logger as log
from pydantic import ValidationError

from ..clients import KubernetesClient
from ..models import GROUP, KIND, VERSION, NginxDeploymentSpec, NginxDeploymentStatus
from ..resources import compile_children
from ..utils import Config, build_deployment_name, get_config


class ChildState(str, Enum):
    CREATED = "Created"
    UPDATED = "Updated"
    UNCHANGED = "Unchanged"


def owner_name(meta: Mapping[str, Any]) -> Optional[str]:
    """Name of the NginxDeployment owning a child, if any."""
    for ref in meta.get('ownerReferences') or []:
        if ref.get('kind') == KIND and ref.get('apiVersion') == f"{GROUP}/{VERSION}":
            return ref.get('name')
    return None


def deployment_drifted(existing: Mapping[str, Any], desired: Mapping[str, Any]) -> bool:
    """Compare the fields the operator owns: replicas and the container image."""
    existing_spec = existing.get('spec') or {}
    desired_spec = desired['spec']

    if existing_spec.get('replicas') != desired_spec['replicas']:
        return True

    existing_containers = ((existing_spec.get('template') or {}).get('spec') or {}).get('containers') or []
    if not existing_containers:
        return True
    desired_image = desired_spec['template']['spec']['containers'][0]['image']
    return existing_containers[0].get('image') != desired_image


def updated_deployment(existing: Mapping[str, Any], desired: Mapping[str, Any]) -> Dict[str, Any]:
    """The observed Deployment with its whole spec overwritten by the desired one.

    Metadata written by others (annotations, extra labels) is kept, and so is
    the observed resourceVersion, which makes the replace conditional.
    """
    body = copy.deepcopy(dict(existing))
    body.pop('status', None)
    body['spec'] = copy.deepcopy(desired['spec'])

    metadata = body.setdefault('metadata', {})
    owner_refs = metadata.setdefault('ownerReferences', [])
    known_uids = {ref.get('uid') for ref in owner_refs}
    for ref in desired['metadata'].get('ownerReferences') or []:
        if ref.get('uid') not in known_uids:
            owner_refs.append(copy.deepcopy(ref))
    return body


class NginxDeploymentReconciler:
    """Handles reconciliation of NginxDeployment resources."""

    def __init__(self, config: Config = None, client: KubernetesClient = None):
        self.config = config or get_config()
        self.client = client or KubernetesClient(self.config)

    async def reconcile(self, body: Mapping[str, Any], status: Optional[Mapping[str, Any]], logger) -> Optional[Dict[str, Any]]:
        """
        Converge the Deployment and Service of a parent towards its spec.
        Returns the status to write, or None when the current status is already accurate.
        """
        namespace = body['metadata']['namespace']
        name = body['metadata']['name']

        try:
            spec = NginxDeploymentSpec(**dict(body.get('spec') or {}))
        except ValidationError as e:
            logger.error(f"Invalid spec for NginxDeployment {namespace}/{name}: {e}")
            raise kopf.PermanentError(f"Invalid spec: {e}")

        children = compile_children(body, spec)

        try:
            deployment_state = await self.reconcile_deployment(children.deployment, logger)
            service_state = await self.reconcile_service(children.service, logger)
            new_status = await self.project_status(namespace, name, spec)
        except ApiException as e:
            kind = "conflict" if e.status == 409 else f"API error {e.status}"
            logger.error(f"Reconciliation of NginxDeployment {namespace}/{name} failed ({kind}): {e.reason}")
            raise kopf.TemporaryError(f"Reconciliation failed: {e.reason}", delay=self.config.resync_interval)

        log.debug(
            f"NginxDeployment {namespace}/{name}: deployment {deployment_state.value}, "
            f"service {service_state.value}, {new_status.status}"
        )

        if not new_status.differs_from(status):
            return None
        return new_status.to_patch()

    async def reconcile_owner(self, namespace: str, name: str, logger) -> Optional[Dict[str, Any]]:
        """Re-run reconciliation for a parent named by one of its children.

        Returns the status written, or None when the parent is gone, being
        deleted, or already reports an accurate status.
        """
        parent = await asyncio.to_thread(self.client.get_nginxdeployment, namespace, name)
        if parent is None or (parent.get('metadata') or {}).get('deletionTimestamp'):
            logger.debug(f"NginxDeployment {namespace}/{name} is gone, ignoring child change")
            return None

        new_status = await self.reconcile(parent, parent.get('status'), logger)
        if new_status:
            await asyncio.to_thread(self.client.patch_nginxdeployment_status, namespace, name, new_status)
        return new_status

    async def reconcile_deployment(self, desired: Dict[str, Any], logger) -> ChildState:
        namespace = desired['metadata']['namespace']
        name = desired['metadata']['name']

        existing = await asyncio.to_thread(self.client.get_deployment, namespace, name)
        if existing is None:
            logger.info(f"Creating Deployment '{name}'")
            await asyncio.to_thread(self.client.create_deployment, namespace, desired)
            return ChildState.CREATED

        if not deployment_drifted(existing, desired):
            return ChildState.UNCHANGED

        logger.info(f"Updating Deployment '{name}'")
        body = updated_deployment(existing, desired)
        await asyncio.to_thread(self.client.replace_deployment, namespace, name, body)
        return ChildState.UPDATED

    async def reconcile_service(self, desired: Dict[str, Any], logger) -> ChildState:
        """Create the Service if absent; an existing Service is never re-diffed."""
        namespace = desired['metadata']['namespace']
        name = desired['metadata']['name']

        existing = await asyncio.to_thread(self.client.get_service, namespace, name)
        if existing is not None:
            return ChildState.UNCHANGED

        logger.info(f"Creating Service '{name}'")
        await asyncio.to_thread(self.client.create_service, namespace, desired)
        return ChildState.CREATED

    async def project_status(self, namespace: str, name: str, spec: NginxDeploymentSpec) -> NginxDeploymentStatus:
        """Derive the parent's status from the observed Deployment."""
        deployment_name = build_deployment_name(name)
        deployment = await asyncio.to_thread(self.client.get_deployment, namespace, deployment_name)
        if deployment is None:
            raise kopf.TemporaryError(
                f"Deployment {namespace}/{deployment_name} not observed yet",
                delay=self.config.resync_interval,
            )

        available = (deployment.get('status') or {}).get('availableReplicas')
        return NginxDeploymentStatus.project(available, spec.replicas)
