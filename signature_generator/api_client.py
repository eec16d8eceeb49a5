"""
HTTP client for the signature settings API.

Talks to the backend that stores the shared settings and hosts uploaded
images.  Endpoints::

    GET    /api/settings          -> {awards, companyTagline, logoUrl}
    POST   /api/settings          {password, awards?, companyTagline?, logoUrl?}
    POST   /api/verify-password   {password} -> {valid}
    POST   /api/upload-photo      {imageData} -> {url, warning?}
    POST   /api/upload-award      {password, imageData} -> {url, warning?}
    DELETE /api/delete-image      {password, imageUrl}
    GET    /api/storage-status    -> {configured, message, provider?}

HTTP 401 becomes ``AuthorizationError``; every other failure (transport,
non-2xx, undecodable body) becomes ``StorageError``.  Qt-free.
"""

import logging

import requests

from signature_generator.config import REQUEST_TIMEOUT
from signature_generator.errors import AuthorizationError, StorageError
from signature_generator.models import SignatureSettings, StorageStatus
from signature_generator.settings_store import settings_patch

logger = logging.getLogger(__name__)


class SignatureApiClient:
    """Settings backend that forwards every call to the HTTP API."""

    def __init__(self, base_url: str, timeout: float = REQUEST_TIMEOUT,
                 session: requests.Session | None = None):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    # --- Transport ---

    def _request(self, method: str, endpoint: str, payload: dict | None = None) -> dict:
        url = f"{self._base_url}{endpoint}"
        try:
            response = self._session.request(method, url, json=payload, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise StorageError(f"Could not reach the signature server: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code == 401:
            message = body.get("error") if isinstance(body, dict) else None
            raise AuthorizationError(message or "Invalid admin password")
        if not response.ok:
            message = body.get("error") if isinstance(body, dict) else None
            logger.warning("%s %s returned HTTP %s", method, url, response.status_code)
            raise StorageError(message or f"Server returned HTTP {response.status_code}")
        if not isinstance(body, dict):
            raise StorageError(f"Unexpected response from {endpoint}")
        return body

    def _upload(self, endpoint: str, payload: dict) -> str:
        body = self._request("POST", endpoint, payload)
        url = body.get("url")
        if not url:
            raise StorageError(f"{endpoint} returned no URL")
        if body.get("warning"):
            logger.warning("%s: %s", endpoint, body["warning"])
        return url

    # --- Backend interface ---

    def get_settings(self) -> SignatureSettings:
        return SignatureSettings.from_dict(self._request("GET", "/api/settings"))

    def update_settings(
        self,
        password: str,
        awards: list | None = None,
        company_tagline: str | None = None,
        logo_url: str | None = None,
    ) -> SignatureSettings:
        payload = {"password": password}
        payload.update(settings_patch(awards, company_tagline, logo_url))
        self._request("POST", "/api/settings", payload)
        logger.info("Updated settings on %s", self._base_url)
        return self.get_settings()

    def verify_password(self, password: str) -> bool:
        try:
            body = self._request("POST", "/api/verify-password", {"password": password})
        except AuthorizationError:
            return False
        return bool(body.get("valid"))

    def upload_photo(self, data_url: str) -> str:
        return self._upload("/api/upload-photo", {"imageData": data_url})

    def upload_award(self, password: str, data_url: str) -> str:
        return self._upload("/api/upload-award", {"password": password, "imageData": data_url})

    def delete_image(self, password: str, url: str) -> None:
        self._request("DELETE", "/api/delete-image", {"password": password, "imageUrl": url})

    def storage_status(self) -> StorageStatus:
        body = self._request("GET", "/api/storage-status")
        return StorageStatus(
            configured=bool(body.get("configured")),
            message=body.get("message", ""),
            provider=body.get("provider", ""),
        )
