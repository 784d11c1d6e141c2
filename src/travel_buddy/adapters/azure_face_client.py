"""Azure Face API client."""

import logging
from dataclasses import dataclass

import httpx

from travel_buddy.errors import ServiceError
from travel_buddy.services.face_match import FaceClient

_logger = logging.getLogger(__name__)


@dataclass
class HttpxFaceClient(FaceClient):
    """Face API client implemented with httpx."""

    endpoint: str
    api_key: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15.0

    @classmethod
    def create(
        cls, endpoint: str, api_key: str, timeout_seconds: float = 15.0
    ) -> "HttpxFaceClient":
        """Create a face client with a managed httpx session."""
        return cls(
            endpoint=endpoint.rstrip("/"),
            api_key=api_key,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def detect(self, image_bytes: bytes) -> list[dict[str, object]]:
        """Detect faces in raw image bytes."""
        payload = await self._post(
            "/detect",
            params={"returnFaceId": "true"},
            content=image_bytes,
            headers={"Content-Type": "application/octet-stream"},
        )
        if not isinstance(payload, list):
            raise ServiceError("Face detection returned an unexpected payload")
        return payload

    async def verify(self, face_id_1: str, face_id_2: str) -> dict[str, object]:
        """Verify whether two face ids belong to the same person."""
        payload = await self._post(
            "/verify", json={"faceId1": face_id_1, "faceId2": face_id_2}
        )
        if not isinstance(payload, dict):
            raise ServiceError("Face verification returned an unexpected payload")
        return payload

    async def _post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        **kwargs: object,
    ) -> object:
        request_headers = {"Ocp-Apim-Subscription-Key": self.api_key}
        if headers:
            request_headers.update(headers)
        try:
            response = await self.http_client.post(
                f"{self.endpoint}{path}",
                headers=request_headers,
                timeout=self.timeout_seconds,
                **kwargs,
            )
        except httpx.TimeoutException as exc:
            raise ServiceError(f"Face API request timed out: {path}") from exc
        except httpx.HTTPError as exc:
            raise ServiceError(f"Face API request failed: {exc}") from exc

        if response.is_error:
            detail = _error_message(response)
            _logger.warning(
                "Face API error: path=%s status=%s detail=%s",
                path,
                response.status_code,
                detail,
            )
            raise ServiceError(f"Face API returned {response.status_code}: {detail}")
        try:
            return response.json()
        except ValueError as exc:
            raise ServiceError("Face API returned invalid JSON") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _error_message(response: httpx.Response) -> str:
    """Extract the Face API error message from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.reason_phrase
