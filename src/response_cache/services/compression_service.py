"""Payload compression for large cached responses.

Payloads whose JSON form reaches ``min_length`` characters are replaced by a
self-describing gzip envelope:

    {"compressed": True, "encoding": "gzip", "data": "<base64>", "originalLength": 1234}

Anything without a truthy ``compressed`` tag is passed through untouched on
decompression, so readers never need to know what wrote the entry.
"""

import base64
import binascii
import gzip
import json
import zlib
from typing import Any

from response_cache.config import settings

ENCODING = "gzip"


class CacheDecodeError(ValueError):
    """Raised when a compressed payload cannot be decoded."""


class CompressionService:
    """Reversible gzip+base64 transform for cached payloads."""

    def __init__(self, enabled: bool | None = None, min_length: int | None = None) -> None:
        """Initialize the compression service.

        Args:
            enabled: Whether ``compress`` does anything. Defaults to settings.
            min_length: Serialized length below which payloads stay as-is.
                Defaults to settings.
        """
        self._enabled = settings.compression_enabled if enabled is None else enabled
        self._min_length = settings.compression_min_length if min_length is None else min_length

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def min_length(self) -> int:
        return self._min_length

    @staticmethod
    def is_compressed(entry: Any) -> bool:
        return isinstance(entry, dict) and bool(entry.get("compressed"))

    def compress(self, payload: Any) -> Any:
        """Compress a JSON-serializable payload if it is large enough.

        The payload is serialized even when compression is off, so anything
        that could not be written to a snapshot is rejected up front.

        Args:
            payload: Any JSON-serializable value

        Returns:
            The payload itself, or a compressed envelope

        Raises:
            TypeError: If the payload is not JSON-serializable
            ValueError: If the payload contains a circular reference
        """
        serialized = json.dumps(payload)
        if not self._enabled or len(serialized) < self._min_length:
            return payload

        data = gzip.compress(serialized.encode("utf-8"))
        return {
            "compressed": True,
            "encoding": ENCODING,
            "data": base64.b64encode(data).decode("ascii"),
            "originalLength": len(serialized),
        }

    def decompress(self, entry: Any) -> Any:
        """Restore a payload written by ``compress``.

        Args:
            entry: A stored payload, compressed or not

        Returns:
            The original payload

        Raises:
            CacheDecodeError: If the envelope is malformed or corrupted
        """
        if not self.is_compressed(entry):
            return entry

        encoding = entry.get("encoding", ENCODING)
        if encoding != ENCODING:
            raise CacheDecodeError(f"Unsupported payload encoding: {encoding!r}")

        try:
            raw = base64.b64decode(entry["data"], validate=True)
            text = gzip.decompress(raw).decode("utf-8")
            return json.loads(text)
        except KeyError as e:
            raise CacheDecodeError("Compressed payload has no data field") from e
        except (binascii.Error, OSError, EOFError, zlib.error, UnicodeDecodeError, TypeError) as e:
            raise CacheDecodeError(f"Corrupted compressed payload: {e}") from e
        except json.JSONDecodeError as e:
            raise CacheDecodeError(f"Compressed payload is not valid JSON: {e}") from e

    def get_status(self) -> dict[str, Any]:
        return {
            "enabled": self._enabled,
            "encoding": ENCODING,
            "min_length": self._min_length,
        }
