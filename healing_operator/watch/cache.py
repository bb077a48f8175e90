"""List+watch mirror of a collection of Kubernetes objects.

The cache lists the collection, then watches it from the listed
resourceVersion. Each watch request asks the server to close the stream after
``resync_interval`` seconds; the cache then relists, which re-delivers every
object still present. Delivery is at-least-once, so consumers must be
idempotent.
"""
import asyncio
from typing import (
    Any, AsyncIterator, Callable, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar,
)

from kubernetes import watch
from kubernetes.client.rest import ApiException
from loguru import logger
from urllib3.exceptions import HTTPError

from ..errors import WatchRetriesExhausted
from .events import EventType, WatchEvent

T = TypeVar("T")

Key = Tuple[str, str]

TRANSIENT_ERRORS = (ApiException, HTTPError, OSError)


def object_key(raw: Any) -> Key:
    return raw.metadata.namespace or "", raw.metadata.name


class WatchCache(Generic[T]):
    """Eventually-consistent local mirror of remote objects.

    Args:
        list_func: kubernetes client list function, e.g.
            ``CoreV1Api.list_pod_for_all_namespaces``.
        converter: turns a raw API object into the typed object delivered to
            consumers.
        kind: name used in log lines.
        list_kwargs: extra arguments for ``list_func`` (namespace, selectors).
        resync_interval: seconds between full relists.
        max_retries: consecutive failures tolerated before giving up.
        backoff_base / backoff_max: reconnect delay bounds, seconds.
        request_timeout: client-side timeout added to every request.
    """

    def __init__(
        self,
        list_func: Callable[..., Any],
        converter: Callable[[Any], T],
        *,
        kind: str = "object",
        list_kwargs: Optional[Dict[str, Any]] = None,
        resync_interval: float = 30.0,
        max_retries: int = 5,
        backoff_base: float = 1.0,
        backoff_max: float = 30.0,
        request_timeout: float = 30.0,
    ):
        self.list_func = list_func
        self.converter = converter
        self.kind = kind
        self.list_kwargs = dict(list_kwargs or {})
        self.resync_interval = resync_interval
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.request_timeout = request_timeout

        self._store: Dict[Key, T] = {}
        self._watcher: Optional[watch.Watch] = None
        self._failures = 0

    def get(self, namespace: str, name: str) -> Optional[T]:
        return self._store.get((namespace, name))

    def snapshot(self) -> List[T]:
        return list(self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def close(self) -> None:
        """Ask the open watch stream to stop.

        The stream ends at its next event. A read already blocked in a worker
        thread returns when the server closes the stream, at most
        ``resync_interval`` seconds later.
        """
        if self._watcher is not None:
            self._watcher.stop()

    def backoff_delay(self, failures: int) -> float:
        """Capped exponential delay before reconnect attempt ``failures``."""
        return min(self.backoff_max, self.backoff_base * (2 ** (failures - 1)))

    async def events(self, stop: asyncio.Event) -> AsyncIterator[WatchEvent[T]]:
        """Yield change events until ``stop`` is set.

        Raises:
            WatchRetriesExhausted: when consecutive failures exceed ``max_retries``.
        """
        self._failures = 0
        while not stop.is_set():
            try:
                async for event in self._list_and_watch(stop):
                    yield event
            except ApiException as e:
                if e.status == 410:
                    logger.info(f"Watch on {self.kind} expired, relisting")
                    continue
                await self._on_failure(e, stop)
            except TRANSIENT_ERRORS as e:
                await self._on_failure(e, stop)

        logger.info(f"Watch on {self.kind} stopped")

    async def _on_failure(self, error: Exception, stop: asyncio.Event) -> None:
        self._failures += 1
        if self._failures > self.max_retries:
            logger.error(f"Watch on {self.kind} failed {self._failures} times, giving up: {error}")
            raise WatchRetriesExhausted(self.kind, self._failures) from error

        delay = self.backoff_delay(self._failures)
        logger.warning(
            f"Watch on {self.kind} failed ({self._failures}/{self.max_retries}): {error}; "
            f"retrying in {delay:.1f}s"
        )
        try:
            await asyncio.wait_for(stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def _list_and_watch(self, stop: asyncio.Event) -> AsyncIterator[WatchEvent[T]]:
        listing = await asyncio.to_thread(
            self.list_func, _request_timeout=self.request_timeout, **self.list_kwargs
        )
        resource_version = listing.metadata.resource_version
        self._failures = 0

        items = listing.items or []
        listed = {object_key(raw) for raw in items}
        # Objects deleted while the watch was down.
        for key in set(self._store) - listed:
            del self._store[key]
        logger.debug(f"Listed {len(listed)} {self.kind} objects at resourceVersion {resource_version}")

        for raw in items:
            yield self._store_event(object_key(raw), raw)
            if stop.is_set():
                return

        watcher = watch.Watch()
        self._watcher = watcher
        stream: Iterator[Dict[str, Any]] = watcher.stream(
            self.list_func,
            resource_version=resource_version,
            timeout_seconds=max(1, int(self.resync_interval)),
            _request_timeout=self.resync_interval + self.request_timeout,
            **self.list_kwargs,
        )
        try:
            while not stop.is_set():
                raw_event = await asyncio.to_thread(next, stream, None)
                if raw_event is None:
                    # Server closed the stream at the resync deadline.
                    return

                event_type = raw_event.get("type")
                raw = raw_event.get("object")
                if event_type == "ERROR":
                    code = raw_event.get("raw_object", {}).get("code")
                    raise ApiException(status=code, reason="Watch error event")
                if event_type == "BOOKMARK" or raw is None:
                    continue
                key = object_key(raw)
                if event_type == "DELETED":
                    self._store.pop(key, None)
                    continue
                yield self._store_event(key, raw)
        finally:
            watcher.stop()
            self._watcher = None

    def _store_event(self, key: Key, raw: Any) -> WatchEvent[T]:
        obj = self.converter(raw)
        event_type = EventType.UPDATED if key in self._store else EventType.ADDED
        self._store[key] = obj
        return WatchEvent(type=event_type, object=obj)
