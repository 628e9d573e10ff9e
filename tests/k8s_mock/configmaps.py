"""Mock CoreV1Api ConfigMap operations.

Calls arrive on executor threads, so all state is guarded by a lock and
every call records its start and end time for overlap assertions.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from kubernetes.client import ApiException, V1ConfigMap, V1ObjectMeta


@dataclass
class ApiCall:
    """A single recorded API call window."""

    operation: str
    namespace: str
    name: str
    started: float
    finished: float = 0.0


def _copy_config_map(config_map: V1ConfigMap) -> V1ConfigMap:
    metadata = config_map.metadata or V1ObjectMeta()
    return V1ConfigMap(
        metadata=V1ObjectMeta(
            name=metadata.name,
            namespace=metadata.namespace,
            resource_version=metadata.resource_version,
        ),
        data=dict(config_map.data) if config_map.data is not None else None,
    )


class MockCoreV1Api:
    """In-memory ConfigMap storage mimicking ``kubernetes.client.CoreV1Api``.

    Thread-safe: state and call history are guarded by one lock.
    """

    def __init__(self, latency_seconds: float = 0.0) -> None:
        self._lock = threading.Lock()
        self._config_maps: dict[tuple[str, str], V1ConfigMap] = {}
        self._calls: list[ApiCall] = []
        self._in_flight = 0
        self._max_in_flight = 0
        self.latency_seconds = latency_seconds
        self.fail_reads = 0
        self.fail_updates = 0
        self.failure_status = 500

    def add_config_map(
        self,
        namespace: str,
        name: str,
        data: dict[str, str] | None = None,
    ) -> V1ConfigMap:
        """Pre-populate a ConfigMap. ``data=None`` leaves the data field unset."""
        config_map = V1ConfigMap(
            metadata=V1ObjectMeta(name=name, namespace=namespace, resource_version="1"),
            data=dict(data) if data is not None else None,
        )
        with self._lock:
            self._config_maps[(namespace, name)] = config_map
        return _copy_config_map(config_map)

    def get_data(self, namespace: str, name: str) -> dict[str, str] | None:
        """Current data of a stored ConfigMap."""
        with self._lock:
            stored = self._config_maps[(namespace, name)]
            return dict(stored.data) if stored.data is not None else None

    def set_data(self, namespace: str, name: str, data: dict[str, str]) -> None:
        """Simulate another writer changing the ConfigMap."""
        with self._lock:
            stored = self._config_maps[(namespace, name)]
            stored.data = dict(data)
            stored.metadata.resource_version = str(int(stored.metadata.resource_version) + 1)

    @property
    def calls(self) -> list[ApiCall]:
        with self._lock:
            return list(self._calls)

    @property
    def read_count(self) -> int:
        return sum(1 for call in self.calls if call.operation == "read")

    @property
    def update_count(self) -> int:
        return sum(1 for call in self.calls if call.operation == "replace")

    @property
    def max_in_flight(self) -> int:
        """Highest number of simultaneously running calls observed."""
        with self._lock:
            return self._max_in_flight

    def read_namespaced_config_map(
        self, name: str, namespace: str, _request_timeout: float | None = None
    ) -> V1ConfigMap:
        call = self._begin("read", namespace, name)
        try:
            with self._lock:
                if self.fail_reads > 0:
                    self.fail_reads -= 1
                    raise ApiException(status=self.failure_status, reason="Injected failure")
                stored = self._config_maps.get((namespace, name))
                if stored is None:
                    raise ApiException(status=404, reason="Not Found")
                return _copy_config_map(stored)
        finally:
            self._end(call)

    def replace_namespaced_config_map(
        self,
        name: str,
        namespace: str,
        body: V1ConfigMap,
        _request_timeout: float | None = None,
    ) -> V1ConfigMap:
        call = self._begin("replace", namespace, name)
        try:
            with self._lock:
                if self.fail_updates > 0:
                    self.fail_updates -= 1
                    raise ApiException(status=self.failure_status, reason="Injected failure")
                stored = self._config_maps.get((namespace, name))
                if stored is None:
                    raise ApiException(status=404, reason="Not Found")
                sent_version = body.metadata.resource_version if body.metadata else None
                if sent_version and sent_version != stored.metadata.resource_version:
                    raise ApiException(status=409, reason="Conflict")

                updated = _copy_config_map(body)
                updated.metadata.resource_version = str(
                    int(stored.metadata.resource_version) + 1
                )
                self._config_maps[(namespace, name)] = updated
                return _copy_config_map(updated)
        finally:
            self._end(call)

    def _begin(self, operation: str, namespace: str, name: str) -> ApiCall:
        call = ApiCall(operation, namespace, name, started=time.monotonic())
        with self._lock:
            self._calls.append(call)
            self._in_flight += 1
            self._max_in_flight = max(self._max_in_flight, self._in_flight)
        if self.latency_seconds:
            time.sleep(self.latency_seconds)
        return call

    def _end(self, call: ApiCall) -> None:
        with self._lock:
            call.finished = time.monotonic()
            self._in_flight -= 1
