"""ConfigMap access with bounded timeouts.

The Kubernetes Python client is synchronous. Calls run in the default
executor and are bounded both by ``asyncio.wait_for`` and by the client's
own request timeout so that a hung API server cannot stall the updater.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from kubernetes.client import ApiException, CoreV1Api, V1ConfigMap
from urllib3.exceptions import HTTPError

from .config import DEFAULT_REQUEST_TIMEOUT_SECONDS


class DocumentStoreError(Exception):
    """Raised when a ConfigMap cannot be read or written."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ConfigMapStore:
    """Reads and replaces ConfigMaps through the core v1 API."""

    def __init__(
        self,
        core_api: CoreV1Api,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._core_api = core_api
        self._timeout_seconds = timeout_seconds

    async def get(self, namespace: str, name: str) -> V1ConfigMap:
        """Fetch a ConfigMap.

        Raises:
            DocumentStoreError: On API errors, including not found, and timeouts.
        """
        return await self._call(
            "get",
            namespace,
            name,
            lambda: self._core_api.read_namespaced_config_map(
                name, namespace, _request_timeout=self._timeout_seconds
            ),
        )

    async def update(self, namespace: str, name: str, config_map: V1ConfigMap) -> V1ConfigMap:
        """Replace a ConfigMap with ``config_map``.

        The object carries the resourceVersion it was read with, so the API
        server rejects the write with a conflict if it changed in between.

        Raises:
            DocumentStoreError: On API errors and timeouts.
        """
        return await self._call(
            "update",
            namespace,
            name,
            lambda: self._core_api.replace_namespaced_config_map(
                name, namespace, config_map, _request_timeout=self._timeout_seconds
            ),
        )

    async def _call(
        self, operation: str, namespace: str, name: str, func: Callable[[], V1ConfigMap]
    ) -> V1ConfigMap:
        loop = asyncio.get_running_loop()
        # A timed-out call keeps running in its thread. A late replace still
        # carries the resourceVersion it read, so the server rejects it as a
        # conflict if a newer write landed first.
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, func),
                timeout=self._timeout_seconds,
            )
        except TimeoutError as e:
            raise DocumentStoreError(
                f"{operation} configmap {namespace}/{name} timed out "
                f"after {self._timeout_seconds}s"
            ) from e
        except ApiException as e:
            raise DocumentStoreError(
                f"{operation} configmap {namespace}/{name} failed: {e.status} {e.reason}",
                status=e.status,
            ) from e
        except HTTPError as e:
            raise DocumentStoreError(
                f"{operation} configmap {namespace}/{name} failed: {e}"
            ) from e
