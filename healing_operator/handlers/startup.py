"""Startup and shutdown of the operator."""
import asyncio
import functools
import logging
import os
import signal

import kopf
from kubernetes import config as k8s_config
from kubernetes.config import ConfigException
from loguru import logger

from ..errors import ConfigurationError
from ..utils.config import Config
from .healer import PodHealer


def load_credentials(app_config: Config) -> None:
    """Load kubernetes client credentials.

    An explicit kubeconfig wins; ``in_cluster`` forces the service account.
    Otherwise the in-cluster service account is tried first, then the local
    default kubeconfig.
    """
    try:
        if app_config.kubeconfig:
            k8s_config.load_kube_config(config_file=app_config.kubeconfig)
            logger.info(f"Loaded Kubernetes configuration from {app_config.kubeconfig}")
        elif app_config.in_cluster:
            k8s_config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration")
        else:
            try:
                k8s_config.load_incluster_config()
                logger.info("Loaded in-cluster Kubernetes configuration")
            except ConfigException:
                k8s_config.load_kube_config()
                logger.info("Loaded local Kubernetes configuration")
    except (ConfigException, OSError) as e:
        raise ConfigurationError(f"Failed to load Kubernetes configuration: {e}") from e


def configure_operator(settings: kopf.OperatorSettings, app_config: Config) -> None:
    """Configure the operator on startup."""
    settings.posting.level = logging.INFO
    settings.watching.connect_timeout = 1 * 60
    settings.watching.server_timeout = 10 * 60
    settings.watching.reconnect_backoff = app_config.watch_backoff_base
    settings.networking.request_timeout = app_config.request_timeout

    try:
        load_credentials(app_config)
    except ConfigurationError as e:
        logger.error(str(e))
        raise kopf.PermanentError(str(e))

    logger.info(f"Resync interval: {app_config.resync_interval}s, dry run: {app_config.dry_run}")


def _on_healer_done(memo: kopf.Memo, task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is None:
        return

    logger.critical(f"Pod healer terminated: {error}")
    memo.setdefault('failures', []).append(error)
    stop_flag = memo.get('stop_flag')
    if stop_flag is not None:
        stop_flag.set()
    else:
        os.kill(os.getpid(), signal.SIGTERM)


def start_healer(memo: kopf.Memo, app_config: Config) -> asyncio.Task:
    """Launch the healer loop as a background task tied to the operator's lifetime."""
    healer = PodHealer(app_config)
    stop = asyncio.Event()
    task = asyncio.create_task(healer.run(stop), name="pod-healer")
    task.add_done_callback(functools.partial(_on_healer_done, memo))
    memo.healer_stop = stop
    memo.healer_task = task
    return task


async def stop_healer(memo: kopf.Memo) -> None:
    """Stop the watch and abort in-flight healing."""
    stop = memo.get('healer_stop')
    task = memo.get('healer_task')
    if stop is not None:
        stop.set()
    if task is not None and not task.done():
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
