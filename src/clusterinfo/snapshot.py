"""Desired-state snapshots built from cluster properties."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .models import PropertyRecord

# Read-only key -> value view handed to the scheduler
Snapshot = Mapping[str, str]


def translate(name: str, translation: Mapping[str, str]) -> str:
    """Return the output key for a property name.

    A missing or empty translation keeps the original name.
    """
    return translation.get(name) or name


def build_snapshot(
    records: Iterable[PropertyRecord],
    translation: Mapping[str, str],
) -> Snapshot:
    """Build a snapshot from property records.

    If two records translate to the same key, the later one wins.
    """
    snapshot: dict[str, str] = {}
    for record in records:
        snapshot[translate(record.name, translation)] = record.value
    return MappingProxyType(snapshot)
