"""
Object Storage Gateway Interface.
Defines the contract the services use to store lab and profile images.
"""

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class UploadedFile:
    """A file received in a multipart form, fully read into memory."""

    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class StorageGateway(Protocol):
    """Interface for image storage operations."""

    def upload(self, file: UploadedFile, key_prefix: str) -> str:
        """Store the file under a collision-resistant key and return its URL."""
        ...

    def delete(self, url: Optional[str]) -> None:
        """Remove the object behind a URL previously returned by upload."""
        ...

    def signed_read_url(self, key: Optional[str], ttl_seconds: int = 3600) -> Optional[str]:
        """Return a time-limited read URL for a key, or None for an empty key."""
        ...

    def key_from_url(self, url: Optional[str]) -> Optional[str]:
        """Derive the storage key from a stored URL."""
        ...
