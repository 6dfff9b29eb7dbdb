"""Cache entry domain entity."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a stored cache entry.

    Owned by the store. ``value`` is the payload exactly as written, which
    may be a compressed envelope.

    Attributes:
        key: The storage key
        value: The cached payload (possibly compressed)
        created_at: Creation time in milliseconds since the epoch
        expires_at: Expiry time in milliseconds since the epoch
    """

    key: str
    value: Any
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """An entry is live only while ``now < expires_at``."""
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Snapshot file representation."""
        return {
            "key": self.key,
            "value": self.value,
            "createdAt": self.created_at,
            "expiresAt": self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheEntryEntity":
        """Build an entry from its snapshot file representation.

        Raises:
            KeyError: If a required field is missing
            TypeError, ValueError: If a timestamp is not numeric
        """
        return cls(
            key=str(data["key"]),
            value=data["value"],
            created_at=float(data["createdAt"]),
            expires_at=float(data["expiresAt"]),
        )
