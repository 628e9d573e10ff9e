"""Polling loop that keeps the cluster-info ConfigMap in sync.

Every cycle:
1. List ClusterProperty resources from the registry
2. Translate property names and build a snapshot
3. Hand the snapshot to the updater, which queues it behind earlier updates
4. Sleep for the poll interval (interruptible by shutdown)

Polling never waits for the ConfigMap update, so a slow API server delays
writes but not the next snapshot. Errors in a cycle are logged and the loop
carries on; each full snapshot corrects whatever an earlier cycle missed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .config import Config
from .scheduler import SerialExecutor
from .snapshot import Snapshot, build_snapshot
from .source import ClusterPropertySource, PropertySourceError
from .updater import ConfigMapUpdater

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Result of a single poll cycle."""

    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    property_count: int = 0
    snapshot: Snapshot = field(default_factory=dict)
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class Reconciler:
    """Runs the poll loop until shutdown."""

    def __init__(
        self,
        config: Config,
        source: ClusterPropertySource,
        updater: ConfigMapUpdater,
        executor: SerialExecutor,
    ) -> None:
        self._config = config
        self._source = source
        self._updater = updater
        self._executor = executor
        self._shutdown_event = asyncio.Event()

    async def run(self) -> None:
        """Poll until shutdown, then give queued updates a chance to finish."""
        logger.info(
            "Starting reconciler",
            extra={
                "configmap": self._updater.target,
                "file_name": self._config.file_name,
                "interval_seconds": self._config.poll_interval_seconds,
                "translations": dict(self._config.translation_map),
            },
        )

        while not self._shutdown_event.is_set():
            await self._sync_once()

            try:
                await asyncio.wait_for(
                    self._shutdown_event.wait(),
                    timeout=self._config.poll_interval_seconds,
                )
            except TimeoutError:
                pass

        await self.drain()
        logger.info("Reconciler shutdown complete", extra={"configmap": self._updater.target})

    def shutdown(self) -> None:
        """Signal the loop to stop after the current cycle."""
        logger.info("Shutdown requested", extra={"configmap": self._updater.target})
        self._shutdown_event.set()

    async def drain(self) -> bool:
        """Wait for scheduled updates, bounded by the drain timeout."""
        if not self._executor.busy:
            return True

        drained = await self._executor.wait_idle(timeout=self._config.drain_timeout_seconds)
        if not drained:
            logger.warning(
                "Pending configmap updates not finished before shutdown",
                extra={
                    "configmap": self._updater.target,
                    "pending": self._executor.pending,
                    "timeout_seconds": self._config.drain_timeout_seconds,
                },
            )
        return drained

    async def _sync_once(self) -> SyncResult:
        """Run one poll cycle and schedule its snapshot.

        A failed registry list is treated as an empty property list. The
        resulting empty snapshot cannot remove keys since updates only merge.
        Any other error is logged and recorded on the result; it never stops
        the loop.
        """
        result = SyncResult()

        try:
            try:
                records = await self._source.list()
            except PropertySourceError as e:
                logger.warning(
                    "Failed to list cluster properties",
                    extra={"error": str(e)},
                )
                result.error = e
                records = []

            result.property_count = len(records)
            result.snapshot = build_snapshot(records, self._config.translation_map)
            self._updater.schedule_update(result.snapshot)
        except Exception as e:
            logger.exception(
                "Poll cycle failed",
                extra={"configmap": self._updater.target, "error": str(e)},
            )
            result.error = e
            return result

        logger.debug(
            "Scheduled configmap update",
            extra={
                "property_count": result.property_count,
                "pending": self._executor.pending,
            },
        )
        return result
