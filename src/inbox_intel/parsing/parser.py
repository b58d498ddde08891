from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def decode_base64url(data: Optional[str]) -> str:
    """
    Decode a Gmail base64url body to text.
    Empty or malformed base64 yields an empty string; bytes that are not
    valid UTF-8 become replacement characters.
    """
    if not data:
        return ""
    normalized = data.replace("-", "+").replace("_", "/")
    # Gmail strips the "=" padding.
    normalized += "=" * (-len(normalized) % 4)
    try:
        raw = base64.b64decode(normalized)
    except binascii.Error as exc:
        logger.debug("Could not decode message body: %s", exc)
        return ""
    return raw.decode("utf-8", errors="replace")


def _body_data(part: Dict[str, Any]) -> Optional[str]:
    body = part.get("body") or {}
    return body.get("data")


def extract_body_from_payload(payload: Dict[str, Any]) -> str:
    """
    Extract the plain text body from a Gmail message payload.

    Inline body data wins; otherwise the first direct text/plain child;
    otherwise a depth-first search through nested multiparts.
    """
    inline = _body_data(payload)
    if inline:
        return decode_base64url(inline)

    parts = payload.get("parts") or []
    for part in parts:
        if part.get("mimeType") == "text/plain":
            return decode_base64url(_body_data(part))

    for part in parts:
        if part.get("parts"):
            found = extract_body_from_payload(part)
            if found:
                return found

    return ""
