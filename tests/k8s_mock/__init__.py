"""Kubernetes API mocks for testing.

In-memory stand-ins for the parts of the Kubernetes Python client this
project uses, so the reconciler can be exercised without a cluster.

Key Features:
- ConfigMap state with resourceVersion conflict checks
- ClusterProperty listing
- Error and latency injection
- Call recording with overlap detection for read/write windows

Usage:
    from k8s_mock import MockCoreV1Api, MockCustomObjectsApi

    core_api = MockCoreV1Api()
    core_api.add_config_map("default", "cluster-info")
    store = ConfigMapStore(core_api)

    assert core_api.update_count == 1
"""

from .configmaps import ApiCall, MockCoreV1Api
from .properties import MockCustomObjectsApi, cluster_property

__all__ = [
    "ApiCall",
    "MockCoreV1Api",
    "MockCustomObjectsApi",
    "cluster_property",
]
