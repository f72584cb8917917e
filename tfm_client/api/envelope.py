"""
Decodes the JSON envelope shared by every catalog endpoint.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from tfm_client.exceptions import ProtocolError
from tfm_client.models.entries import ApiEnvelope

log = logging.getLogger(__name__)


def parse_envelope(payload: bytes | str) -> ApiEnvelope:
    """
    Parses a raw response body into a successful envelope.

    Args:
        payload: The HTTP response body.

    Returns:
        The decoded envelope, guaranteed to have `success=True`.

    Raises:
        ProtocolError: If the body is not a JSON object, or the server reported a
        failure.
    """
    try:
        document = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        log.warning(f"JSON parse error: {e}")
        raise ProtocolError(f"JSON parse error: {e}") from e

    if not isinstance(document, dict):
        raise ProtocolError(
            f"Expected a JSON object envelope, got {type(document).__name__}."
        )

    try:
        envelope = ApiEnvelope.model_validate(document)
    except ValidationError as e:
        raise ProtocolError(f"Malformed response envelope: {e}") from e

    if not envelope.success:
        log.warning(f"API error: {envelope.error_text}")
        raise ProtocolError(envelope.error_text)

    return envelope


def extract_items(data: Any) -> list[dict[str, Any]]:
    """
    Returns the item array of an envelope's `data`, which is either the array itself
    or an object carrying it under `items`. Non-object elements are skipped.
    """
    if isinstance(data, dict):
        data = data.get("items")
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]
