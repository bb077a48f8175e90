"""Remediation executor: applies the single corrective primitive, pod deletion."""
import asyncio

from kubernetes.client.rest import ApiException
from loguru import logger

from ..models.pod import PodSnapshot
from .policy import Action

DELETING_ACTIONS = {Action.DELETE, Action.CUSTOM_RESTART, Action.CUSTOM_DELETE}


class RemediationExecutor:
    """Deletes stuck pods so their owning workload controller recreates them.

    Deletion is idempotent: a pod that is already gone counts as healed. Other
    failures are logged and left for the next watch event or resync to retry.
    """

    def __init__(self, client, dry_run: bool = False):
        self.client = client
        self.dry_run = dry_run

    async def execute(self, pod: PodSnapshot, action: Action) -> bool:
        """Apply ``action`` to ``pod``; returns True when the pod is gone."""
        if action not in DELETING_ACTIONS:
            return False

        ref = f"{pod.namespace}/{pod.name}"
        if action == Action.CUSTOM_RESTART:
            logger.info(f"Performing custom restart action for pod {ref}")
        elif action == Action.CUSTOM_DELETE:
            logger.info(f"Performing custom delete action for pod {ref}")

        if self.dry_run:
            logger.info(f"DRY RUN: would delete pod {ref}")
            return False

        logger.info(f"Attempting to heal pod {ref}")
        try:
            await asyncio.to_thread(self.client.delete_pod, pod.namespace, pod.name)
        except ApiException as e:
            if e.status == 404:
                logger.debug(f"Pod {ref} already deleted")
                return True
            logger.error(f"Failed to heal pod {ref}: {e.status} {e.reason}")
            return False
        except Exception as e:
            logger.error(f"Failed to heal pod {ref}: {e}")
            return False

        logger.info(f"Successfully healed pod {ref}")
        return True
