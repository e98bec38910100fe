"""
Payload validation shared by the endpoint modules.

A payload of the wrong shape is a parse failure and surfaces as
:class:`TransportError`, like a body that is not JSON at all.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from metrics_dashboard.data.api_client import TransportError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def parse_list(model: type[M], payload: Any, path: str) -> list[M]:
    """Validate a JSON array of *model* items fetched from *path*."""
    if not isinstance(payload, list):
        logger.error("Expected a JSON array from %s, got %s", path, type(payload).__name__)
        raise TransportError()
    try:
        return [model.model_validate(item) for item in payload]
    except ValidationError as exc:
        logger.error("Unexpected payload from %s: %s", path, exc)
        raise TransportError() from exc


def parse_object(model: type[M], payload: Any, path: str) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.error("Unexpected payload from %s: %s", path, exc)
        raise TransportError() from exc
