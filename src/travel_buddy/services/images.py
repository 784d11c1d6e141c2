"""Image acquisition for identity verification."""

from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from travel_buddy.domain.verification import ImageHandle
from travel_buddy.errors import ImageUnavailable

ID_IMAGE = "id"
SELFIE_IMAGE = "selfie"


class ImageStore(Protocol):
    """Storage interface for verification images."""

    def put(self, path: str, content: bytes, content_type: str) -> None:
        """Store image bytes at a path."""

    def get(self, path: str) -> bytes:
        """Return the image bytes stored at a path."""

    def remove(self, paths: list[str]) -> None:
        """Delete images by path."""


@dataclass
class ImageService:
    """Turns uploaded bytes into image handles and back."""

    store: ImageStore

    def acquire(self, user_id: str, kind: str, content: bytes) -> ImageHandle:
        """Store an uploaded image and return its handle."""
        if kind not in {ID_IMAGE, SELFIE_IMAGE}:
            raise ValueError(f"Unknown image kind: {kind}")
        if not content:
            raise ImageUnavailable("Image upload is empty")
        content_type = detect_mime_type(content)
        extension = content_type.rsplit("/", 1)[-1]
        path = f"{user_id}/{kind}-{uuid4().hex}.{extension}"
        self.store.put(path, content, content_type)
        return ImageHandle(ref=path, content_type=content_type)

    def load(self, handle: ImageHandle) -> bytes:
        """Return the bytes behind a handle."""
        return self.store.get(handle.ref)

    def discard(self, *handles: ImageHandle | None) -> None:
        """Delete the images behind the given handles."""
        paths = [handle.ref for handle in handles if handle is not None]
        if paths:
            self.store.remove(paths)


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
