"""Pydantic models for ClusterProperty resources.

The registry returns raw ``about.k8s.io/v1alpha1`` ClusterProperty objects as
plain dicts. These models validate them at the boundary and reduce each one
to the name/value pair the rest of the system works with.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

CLUSTER_PROPERTY_GROUP = "about.k8s.io"
CLUSTER_PROPERTY_VERSION = "v1alpha1"
CLUSTER_PROPERTY_PLURAL = "clusterproperties"


class PropertyRecord(BaseModel):
    """A single named cluster property, e.g. ``id.k8s.io = cluster-7``."""

    model_config = {"frozen": True}

    name: str = Field(min_length=1)
    value: str = ""

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> PropertyRecord:
        """Build a record from a ClusterProperty object.

        Args:
            resource: Object as returned by the custom objects API.

        Raises:
            pydantic.ValidationError: If the object has no metadata name.
        """
        parsed = ClusterProperty.model_validate(resource)
        return cls(name=parsed.metadata.name, value=parsed.spec.value)


class ObjectMeta(BaseModel):
    """Subset of Kubernetes object metadata used here."""

    model_config = {"extra": "ignore"}

    name: str = Field(min_length=1)


class ClusterPropertySpec(BaseModel):
    """ClusterProperty ``spec`` block."""

    model_config = {"extra": "ignore"}

    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        """Treat an explicit null value as empty."""
        return "" if v is None else v


class ClusterProperty(BaseModel):
    """A ClusterProperty custom resource."""

    model_config = {"extra": "ignore"}

    api_version: str | None = Field(None, alias="apiVersion")
    kind: str | None = None
    metadata: ObjectMeta
    spec: ClusterPropertySpec = Field(default_factory=ClusterPropertySpec)
