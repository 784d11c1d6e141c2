"""Supabase Storage bucket for verification images."""

from dataclasses import dataclass

import httpx
from supabase import Client, StorageException

from travel_buddy.errors import ImageUnavailable
from travel_buddy.services.images import ImageStore


@dataclass
class SupabaseImageStore(ImageStore):
    """Stores images in a private Supabase Storage bucket."""

    client: Client
    bucket: str

    def put(self, path: str, content: bytes, content_type: str) -> None:
        """Upload image bytes."""
        try:
            self.client.storage.from_(self.bucket).upload(
                path, content, {"content-type": content_type, "upsert": "true"}
            )
        except (StorageException, httpx.HTTPError) as exc:
            raise ImageUnavailable(f"Failed to upload image {path}") from exc

    def get(self, path: str) -> bytes:
        """Download image bytes."""
        try:
            return self.client.storage.from_(self.bucket).download(path)
        except (StorageException, httpx.HTTPError) as exc:
            raise ImageUnavailable(f"Failed to download image {path}") from exc

    def remove(self, paths: list[str]) -> None:
        """Delete images from the bucket."""
        try:
            self.client.storage.from_(self.bucket).remove(paths)
        except (StorageException, httpx.HTTPError) as exc:
            raise ImageUnavailable("Failed to delete images") from exc
