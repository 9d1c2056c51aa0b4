"""Schema and application version metadata for serialized contracts."""

from __future__ import annotations

from typing import Any, Dict

SCHEMA_VERSION = "1.0.0"
APP_VERSION = "0.3.0"


def make_envelope(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap a payload with schema/app versions for serialization."""
    return {
        "schema_version": SCHEMA_VERSION,
        "app_version": APP_VERSION,
        "payload": payload,
    }


def open_envelope(document: Dict[str, Any]) -> Dict[str, Any]:
    """Return the payload of an enveloped document.

    Bare payloads (no envelope) are returned unchanged.
    """
    if "payload" in document and "schema_version" in document:
        return document["payload"]
    return document
