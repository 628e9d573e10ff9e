"""Merge of property snapshots into the cluster-info ConfigMap.

Each update is a fetch, merge and conditional write:

1. Read the ConfigMap (bounded timeout)
2. Decode the YAML document stored under the configured data key
3. Add keys that are missing and overwrite keys whose value differs
4. Write the whole ConfigMap back only if something changed

Keys that exist in the document but not in the snapshot are never removed.
A failed read or write is logged and dropped; the next poll cycle schedules
a fresh snapshot, which acts as the retry.

Updates must only run through ``schedule_update`` so that the executor
keeps at most one fetch-merge-write cycle in flight.
"""

from __future__ import annotations

import logging
from enum import Enum

from .codec import decode_document, encode_document
from .scheduler import SerialExecutor
from .snapshot import Snapshot
from .store import ConfigMapStore, DocumentStoreError

logger = logging.getLogger(__name__)


class MergeResult(str, Enum):
    """Outcome of a single update."""

    UNCHANGED = "unchanged"
    UPDATED = "updated"
    FETCH_FAILED = "fetch_failed"
    WRITE_FAILED = "write_failed"


class ConfigMapUpdater:
    """Applies snapshots to one ConfigMap, one update at a time."""

    def __init__(
        self,
        store: ConfigMapStore,
        executor: SerialExecutor,
        namespace: str,
        name: str,
        file_name: str,
    ) -> None:
        self._store = store
        self._executor = executor
        self._namespace = namespace
        self._name = name
        self._file_name = file_name

    @property
    def target(self) -> str:
        return f"{self._namespace}/{self._name}"

    def schedule_update(self, change: Snapshot) -> None:
        """Queue ``change`` behind every previously scheduled update."""
        self._executor.schedule(lambda: self.apply(change))

    async def apply(self, change: Snapshot) -> MergeResult:
        """Merge ``change`` into the ConfigMap.

        Never raises for store failures; the outcome is returned and logged.
        """
        try:
            config_map = await self._store.get(self._namespace, self._name)
        except DocumentStoreError as e:
            logger.error(
                "Failed to get configmap",
                extra={"configmap": self.target, "error": str(e)},
            )
            return MergeResult.FETCH_FAILED

        if config_map.data is None:
            config_map.data = {}

        values = decode_document(config_map.data.get(self._file_name))

        has_diff = False
        for key, value in change.items():
            if values.get(key) != value:
                values[key] = value
                has_diff = True

        if not has_diff:
            logger.debug("Configmap already up to date", extra={"configmap": self.target})
            return MergeResult.UNCHANGED

        config_map.data[self._file_name] = encode_document(values)

        try:
            await self._store.update(self._namespace, self._name, config_map)
        except DocumentStoreError as e:
            logger.error(
                "Failed to update configmap",
                extra={"configmap": self.target, "error": str(e)},
            )
            return MergeResult.WRITE_FAILED

        logger.info(
            "Updated configmap",
            extra={
                "configmap": self.target,
                "file_name": self._file_name,
                "keys": sorted(change),
            },
        )
        return MergeResult.UPDATED
