"""YAML encoding of the flat key/value document stored in the ConfigMap."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import yaml

logger = logging.getLogger(__name__)


def decode_document(text: str | None) -> dict[str, str]:
    """Decode a YAML document into a flat string mapping.

    Scalars are kept as their literal text (``0755`` stays ``0755``, ``yes``
    stays ``yes``) so that re-encoding never rewrites values nobody changed.
    Anything that is not a flat mapping of scalars (invalid YAML, a list,
    nested maps) decodes to an empty mapping. Never raises.
    """
    if not text:
        return {}

    try:
        loaded = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        logger.debug("Ignoring unparseable document", extra={"error": str(e)})
        return {}

    if not isinstance(loaded, dict):
        logger.debug(
            "Ignoring document that is not a mapping",
            extra={"document_type": type(loaded).__name__},
        )
        return {}

    values: dict[str, str] = {}
    for key, value in loaded.items():
        if not isinstance(key, str) or not isinstance(value, str):
            logger.debug("Ignoring document with nested values", extra={"key": str(key)})
            return {}
        values[key] = value
    return values


def encode_document(values: Mapping[str, str]) -> str:
    """Encode a flat string mapping as block-style YAML with sorted keys."""
    return yaml.safe_dump(
        dict(values),
        default_flow_style=False,
        sort_keys=True,
        allow_unicode=True,
    )
