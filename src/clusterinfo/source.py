"""ClusterProperty registry access."""

from __future__ import annotations

import asyncio
import logging

from kubernetes.client import ApiException, CustomObjectsApi
from pydantic import ValidationError
from urllib3.exceptions import HTTPError

from .models import (
    CLUSTER_PROPERTY_GROUP,
    CLUSTER_PROPERTY_PLURAL,
    CLUSTER_PROPERTY_VERSION,
    PropertyRecord,
)

logger = logging.getLogger(__name__)

# Listing is not bounded by the per-write timeout; it only has to finish
# well within a poll cycle on a healthy API server.
DEFAULT_LIST_TIMEOUT_SECONDS = 10


class PropertySourceError(Exception):
    """Raised when the ClusterProperty list cannot be fetched."""

    pass


class ClusterPropertySource:
    """Lists cluster-scoped ClusterProperty resources."""

    def __init__(
        self,
        custom_api: CustomObjectsApi,
        timeout_seconds: float = DEFAULT_LIST_TIMEOUT_SECONDS,
    ) -> None:
        self._custom_api = custom_api
        self._timeout_seconds = timeout_seconds

    async def list(self) -> list[PropertyRecord]:
        """Return every ClusterProperty as a PropertyRecord.

        Items that do not validate are skipped with a warning.

        Raises:
            PropertySourceError: If the list call fails or times out.
        """
        loop = asyncio.get_running_loop()
        try:
            response = await asyncio.wait_for(
                loop.run_in_executor(
                    None,
                    lambda: self._custom_api.list_cluster_custom_object(
                        CLUSTER_PROPERTY_GROUP,
                        CLUSTER_PROPERTY_VERSION,
                        CLUSTER_PROPERTY_PLURAL,
                        _request_timeout=self._timeout_seconds,
                    ),
                ),
                timeout=self._timeout_seconds,
            )
        except TimeoutError as e:
            raise PropertySourceError(
                f"listing {CLUSTER_PROPERTY_PLURAL} timed out after {self._timeout_seconds}s"
            ) from e
        except ApiException as e:
            raise PropertySourceError(
                f"listing {CLUSTER_PROPERTY_PLURAL} failed: {e.status} {e.reason}"
            ) from e
        except HTTPError as e:
            raise PropertySourceError(f"listing {CLUSTER_PROPERTY_PLURAL} failed: {e}") from e

        records: list[PropertyRecord] = []
        for item in (response or {}).get("items") or []:
            try:
                records.append(PropertyRecord.from_resource(item))
            except ValidationError as e:
                logger.warning(
                    "Skipping invalid ClusterProperty",
                    extra={"error": str(e), "item_name": _item_name(item)},
                )
        return records


def _item_name(item: object) -> str | None:
    if isinstance(item, dict):
        metadata = item.get("metadata")
        if isinstance(metadata, dict):
            return metadata.get("name")
    return None
