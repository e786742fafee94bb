"""Inline audio as ``data:`` URLs.

The synthesized answer travels inside the JSON bundle, so the binary audio
is base64-encoded into a self-contained data URL the client can play
without a second request.
"""

import base64
import binascii

DATA_URL_PREFIX = "data:"
BASE64_MARKER = ";base64,"


def encode_data_url(audio: bytes, mime_type: str = "audio/mpeg") -> str:
    return f"{DATA_URL_PREFIX}{mime_type}{BASE64_MARKER}{base64.b64encode(audio).decode('ascii')}"


def decode_data_url(url: str) -> tuple[str, bytes]:
    """Split a base64 data URL into ``(mime_type, payload_bytes)``.

    Raises ``ValueError`` if *url* is not a base64 data URL.
    """
    if not is_data_url(url):
        raise ValueError("not a base64 data URL")
    header, _, payload = url[len(DATA_URL_PREFIX):].partition(BASE64_MARKER)
    try:
        return header, base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 payload: {e}") from e


def is_data_url(url: str) -> bool:
    return url.startswith(DATA_URL_PREFIX) and BASE64_MARKER in url
