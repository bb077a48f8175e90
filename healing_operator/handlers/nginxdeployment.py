"""Kopf handlers for NginxDeployment resources and their children."""
import kopf
from loguru import logger

from ..models import GROUP, PLURAL, VERSION
from ..utils import get_config
from .reconciler import NginxDeploymentReconciler, owner_name

# Lazily initialize reconciler when needed
_reconciler = None


def get_reconciler():
    """Get the reconciler instance (lazy initialization)."""
    global _reconciler
    if _reconciler is None:
        _reconciler = NginxDeploymentReconciler(get_config())
    return _reconciler


async def apply_reconciliation(body, status, patch, logger):
    new_status = await get_reconciler().reconcile(body, status, logger)
    if new_status:
        patch.status.update(new_status)
    return new_status


def is_owned_child(meta, **_):
    return owner_name(meta) is not None


@kopf.on.resume(GROUP, VERSION, PLURAL)
@kopf.on.create(GROUP, VERSION, PLURAL)
async def on_create(body, status, meta, patch, logger, **kwargs):
    """Handle NginxDeployment creation, and existing parents on operator restart."""
    logger.info(f"Reconciling NginxDeployment {meta['namespace']}/{meta['name']}")
    await apply_reconciliation(body, status, patch, logger)


@kopf.on.update(GROUP, VERSION, PLURAL, field='spec')
async def on_spec_change(body, status, meta, patch, logger, **kwargs):
    """Handle changes to the spec field."""
    logger.info(f"Spec changed for NginxDeployment {meta['namespace']}/{meta['name']}")
    await apply_reconciliation(body, status, patch, logger)


@kopf.timer(GROUP, VERSION, PLURAL, interval=get_config().resync_interval)
async def resync(body, status, patch, logger, **kwargs):
    """Periodic level-triggered re-reconciliation to heal missed events and child drift."""
    await apply_reconciliation(body, status, patch, logger)


@kopf.on.event('apps', 'v1', 'deployments', when=is_owned_child)
@kopf.on.event('v1', 'services', when=is_owned_child)
async def on_child_event(type, meta, logger, **kwargs):
    """Re-drive the owning NginxDeployment when one of its children changes or disappears."""
    parent = owner_name(meta)
    logger.debug(f"Child {meta['name']} event {type}, re-reconciling NginxDeployment {parent}")
    await get_reconciler().reconcile_owner(meta['namespace'], parent, logger)


def register_handlers():
    """Register all handlers. This function is called from main.py."""
    logger.info("NginxDeployment handlers registered")
