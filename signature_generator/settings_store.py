"""
Shared-settings persistence: validation and the local JSON backend.

The shared settings (award badges, company tagline, logo URL) are normally
served by the signature API (see ``api_client``).  When no API URL is
configured, ``LocalSettingsStore`` keeps them in a JSON file in the user's
config directory and offers the same interface, including the admin
password check and inline (data URL) "uploads".  This module is Qt-free.

The on-disk format uses a versioned envelope::

    {
        "version": 1,
        "settings": {
            "awards": ["https://.../badge.png"],
            "companyTagline": "Events, reinvented.",
            "logoUrl": ""
        }
    }
"""

import hmac
import json
import logging
from copy import deepcopy
from pathlib import Path

from signature_generator.config import (
    API_URL, DEFAULT_SETTINGS, LOCAL_ADMIN_PASSWORD, MAX_AWARDS, MAX_TAGLINE_LENGTH,
    config_dir,
)
from signature_generator.errors import AuthorizationError, StorageError
from signature_generator.models import SignatureSettings, StorageStatus

logger = logging.getLogger(__name__)

_SETTINGS_FILENAME = "settings.json"
_FORMAT_VERSION = 1

_URL_PREFIXES = ("http://", "https://", "data:image/")

INLINE_UPLOAD_WARNING = "Using base64 fallback - images may not display in emails"


# =============================================================================
# Validation
# =============================================================================
def validate_image_url(url: object, allow_empty: bool = False) -> str | None:
    """
    Validate an image reference (hosted URL or image data URL).

    Returns an error string if invalid, or None if valid.
    """
    if not isinstance(url, str):
        return "must be a string"
    if not url.strip():
        return None if allow_empty else "must not be empty"
    if not url.startswith(_URL_PREFIXES):
        return "must be an http(s) URL or an image data URL"
    return None


def validate_settings(data: object) -> list[str]:
    """
    Validate a settings dict in wire format (``companyTagline``, ``logoUrl``).

    Keys may be absent (partial update); present keys must be well-formed.
    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, dict):
        errors.append("Settings data must be a dict")
        return errors

    awards = data.get("awards")
    if awards is not None:
        if not isinstance(awards, list):
            errors.append("awards must be a list")
        else:
            if len(awards) > MAX_AWARDS:
                errors.append(f"awards has {len(awards)} entries, at most {MAX_AWARDS} allowed")
            for i, award in enumerate(awards):
                err = validate_image_url(award)
                if err:
                    errors.append(f"Award #{i + 1}: {err}")

    tagline = data.get("companyTagline")
    if tagline is not None:
        if not isinstance(tagline, str):
            errors.append("companyTagline must be a string")
        elif len(tagline) > MAX_TAGLINE_LENGTH:
            errors.append(f"companyTagline is longer than {MAX_TAGLINE_LENGTH} characters")

    logo = data.get("logoUrl")
    if logo is not None:
        err = validate_image_url(logo, allow_empty=True)
        if err:
            errors.append(f"logoUrl {err}")

    return errors


def settings_patch(
    awards: list | None = None,
    company_tagline: str | None = None,
    logo_url: str | None = None,
) -> dict:
    """Build a wire-format partial update; ``None`` fields are left out."""
    patch = {}
    if awards is not None:
        patch["awards"] = list(awards)
    if company_tagline is not None:
        patch["companyTagline"] = company_tagline
    if logo_url is not None:
        patch["logoUrl"] = logo_url
    return patch


# =============================================================================
# Local backend
# =============================================================================
class LocalSettingsStore:
    """Settings backend backed by a JSON file, with inline image "uploads"."""

    def __init__(self, path: Path | None = None, admin_password: str | None = None):
        self._path = Path(path) if path is not None else config_dir() / _SETTINGS_FILENAME
        self._password = LOCAL_ADMIN_PASSWORD if admin_password is None else admin_password

    @property
    def path(self) -> Path:
        return self._path

    # --- Read / write ---

    def _read(self) -> dict:
        """Return the stored wire-format dict, falling back to defaults."""
        if not self._path.exists():
            logger.debug("No settings file at %s, using defaults", self._path)
            return deepcopy(DEFAULT_SETTINGS)

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Failed to read settings (%s), using defaults", exc)
            return deepcopy(DEFAULT_SETTINGS)

        if not isinstance(raw, dict) or raw.get("version") != _FORMAT_VERSION:
            logger.warning("Settings file version mismatch or invalid format, using defaults")
            return deepcopy(DEFAULT_SETTINGS)

        data = raw.get("settings")
        errors = validate_settings(data)
        if errors:
            logger.warning(
                "Settings file validation failed:\n  %s\nUsing defaults.",
                "\n  ".join(errors),
            )
            return deepcopy(DEFAULT_SETTINGS)

        merged = deepcopy(DEFAULT_SETTINGS)
        merged.update({k: v for k, v in data.items() if k in DEFAULT_SETTINGS})
        return merged

    def _write(self, data: dict) -> None:
        envelope = {"version": _FORMAT_VERSION, "settings": data}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(envelope, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as exc:
            logger.error("Could not write settings to %s: %s", self._path, exc)
            raise StorageError(f"Could not save settings: {exc}") from exc
        logger.info("Saved settings (%d award(s)) to %s", len(data.get("awards", [])), self._path)

    def _check_password(self, password: str) -> None:
        if not self.verify_password(password):
            raise AuthorizationError("Invalid admin password")

    # --- Backend interface ---

    def get_settings(self) -> SignatureSettings:
        return SignatureSettings.from_dict(self._read())

    def update_settings(
        self,
        password: str,
        awards: list | None = None,
        company_tagline: str | None = None,
        logo_url: str | None = None,
    ) -> SignatureSettings:
        """
        Apply a partial update and persist it.

        Raises AuthorizationError on a wrong password and ValueError if the
        new values fail validation.
        """
        self._check_password(password)
        patch = settings_patch(awards, company_tagline, logo_url)
        errors = validate_settings(patch)
        if errors:
            raise ValueError("Invalid settings:\n  " + "\n  ".join(errors))

        data = self._read()
        data.update(patch)
        self._write(data)
        return SignatureSettings.from_dict(data)

    def verify_password(self, password: str) -> bool:
        if not isinstance(password, str):
            return False
        return hmac.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))

    def upload_photo(self, data_url: str) -> str:
        """No hosting available: hand the data URL back unchanged."""
        return self._inline(data_url)

    def upload_award(self, password: str, data_url: str) -> str:
        self._check_password(password)
        return self._inline(data_url)

    def delete_image(self, password: str, url: str) -> None:
        """Nothing is hosted locally, so only the credential is checked."""
        self._check_password(password)

    def storage_status(self) -> StorageStatus:
        return StorageStatus(
            configured=False,
            message="No image hosting configured. Images are embedded as base64 "
                    "(may not display in every email client).",
        )

    @staticmethod
    def _inline(data_url: str) -> str:
        if not data_url:
            raise ValueError("No image data provided")
        logger.warning(INLINE_UPLOAD_WARNING)
        return data_url


def make_backend():
    """Return the HTTP client when an API URL is configured, else the local store."""
    if API_URL:
        from signature_generator.api_client import SignatureApiClient
        logger.info("Using settings API at %s", API_URL)
        return SignatureApiClient(API_URL)
    logger.info("No SIGNATURE_API_URL set, using local settings store")
    return LocalSettingsStore()
