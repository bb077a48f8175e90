"""Pod healer loop: watch pods, classify them and delete the stuck ones."""
import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional, Set

from loguru import logger

from ..clients import KubernetesClient
from ..healing import Action, HealingPolicy, RemediationExecutor, Thresholds, classify, decide, should_evaluate
from ..models import PodSnapshot
from ..utils import Config, get_config
from ..watch import WatchCache, WatchEvent


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PodHealer:
    """Consumes pod watch events and remediates stuck pods.

    Each event is handled independently from its snapshot alone, so handlers
    run concurrently without locks. A failed deletion is simply re-driven by
    the next event or resync for that pod.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        client: Optional[KubernetesClient] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config or get_config()
        self.client = client or KubernetesClient(self.config)
        self.clock = clock

        self.thresholds = Thresholds.from_config(self.config)
        self.policy = HealingPolicy.from_config(self.config)
        self.executor = RemediationExecutor(self.client, dry_run=self.config.dry_run)

        list_func, list_kwargs = self.client.pod_list_func(self.config.watch_namespace)
        self.cache: WatchCache[PodSnapshot] = WatchCache(
            list_func,
            PodSnapshot.from_api,
            kind="pods",
            list_kwargs=list_kwargs,
            resync_interval=self.config.resync_interval,
            max_retries=self.config.watch_max_retries,
            backoff_base=self.config.watch_backoff_base,
            backoff_max=self.config.watch_backoff_max,
            request_timeout=self.config.request_timeout,
        )

    async def handle(self, event: WatchEvent[PodSnapshot]) -> Action:
        """Evaluate one pod snapshot and apply the chosen action."""
        pod = event.object
        if not should_evaluate(pod, self.policy):
            return Action.SKIP

        verdict = classify(pod, self.clock(), self.thresholds)
        action = decide(pod, verdict, self.policy)
        if action != Action.SKIP:
            logger.info(f"Pod {pod.namespace}/{pod.name} is {verdict.value}, action {action.value}")
            await self.executor.execute(pod, action)
        return action

    async def run(self, stop: asyncio.Event) -> None:
        """Run until ``stop`` is set. Raises WatchRetriesExhausted on fatal watch failure."""
        slots = asyncio.Semaphore(self.config.healer_workers)
        tasks: Set[asyncio.Task] = set()

        logger.info("Starting Pod Healer")
        try:
            async for event in self.cache.events(stop):
                await slots.acquire()
                task = asyncio.create_task(self._dispatch(event, slots))
                tasks.add(task)
                task.add_done_callback(tasks.discard)
        finally:
            self.cache.close()
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Pod Healer stopped")

    async def _dispatch(self, event: WatchEvent[PodSnapshot], slots: asyncio.Semaphore) -> None:
        pod = event.object
        try:
            await self.handle(event)
        except Exception as e:
            logger.error(f"Error healing pod {pod.namespace}/{pod.name}: {e}")
        finally:
            slots.release()
