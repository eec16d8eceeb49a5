import json
import logging

import pytest

from signature_generator import settings_store
from signature_generator.api_client import SignatureApiClient
from signature_generator.errors import AuthorizationError
from signature_generator.models import SignatureSettings
from signature_generator.settings_store import (
    LocalSettingsStore, make_backend, settings_patch, validate_image_url, validate_settings,
)

PASSWORD = "s3cret"


@pytest.fixture
def store(tmp_path):
    return LocalSettingsStore(tmp_path / "settings.json", admin_password=PASSWORD)


# --- validation ---

@pytest.mark.parametrize("url, allow_empty, ok", [
    ("https://cdn.example.com/a.png", False, True),
    ("http://x/y.png", False, True),
    ("data:image/png;base64,AAAA", False, True),
    ("", True, True),
    ("", False, False),
    ("ftp://x/y.png", False, False),
    ("javascript:alert(1)", True, False),
    (42, True, False),
])
def test_validate_image_url(url, allow_empty, ok):
    assert (validate_image_url(url, allow_empty) is None) is ok


def test_validate_settings_accepts_partial_update():
    assert validate_settings({}) == []
    assert validate_settings({"companyTagline": "Hi"}) == []


def test_validate_settings_reports_each_problem():
    errors = validate_settings({
        "awards": ["https://ok/a.png", "bad"],
        "companyTagline": 5,
        "logoUrl": "nope",
    })
    assert errors == [
        "Award #2: must be an http(s) URL or an image data URL",
        "companyTagline must be a string",
        "logoUrl must be an http(s) URL or an image data URL",
    ]


def test_validate_settings_limits():
    errors = validate_settings({
        "awards": ["https://x/a.png"] * (settings_store.MAX_AWARDS + 1),
        "companyTagline": "x" * (settings_store.MAX_TAGLINE_LENGTH + 1),
    })
    assert len(errors) == 2
    assert validate_settings(["not", "a", "dict"]) == ["Settings data must be a dict"]
    assert validate_settings({"awards": "https://x/a.png"}) == ["awards must be a list"]


def test_settings_patch_leaves_out_none():
    assert settings_patch(company_tagline="") == {"companyTagline": ""}
    assert settings_patch(awards=("a",), logo_url="l") == {"awards": ["a"], "logoUrl": "l"}


# --- local store ---

def test_missing_file_gives_defaults(store):
    assert store.get_settings() == SignatureSettings()


def test_default_path_lives_in_config_dir(isolated_config_dir):
    assert LocalSettingsStore().path == isolated_config_dir / "signature-generator" / "settings.json"


def test_update_persists_partial_changes(store):
    store.update_settings(PASSWORD, awards=["https://x/a.png"], company_tagline="First")
    saved = store.update_settings(PASSWORD, logo_url="https://x/logo.png")

    assert saved == SignatureSettings(
        awards=["https://x/a.png"], company_tagline="First", logo_url="https://x/logo.png",
    )
    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert raw["version"] == 1
    assert raw["settings"]["companyTagline"] == "First"

    reopened = LocalSettingsStore(store.path, admin_password=PASSWORD)
    assert reopened.get_settings() == saved


def test_update_with_wrong_password_changes_nothing(store):
    with pytest.raises(AuthorizationError):
        store.update_settings("wrong", company_tagline="Hacked")
    assert not store.path.exists()


def test_update_with_invalid_values_raises(store):
    with pytest.raises(ValueError):
        store.update_settings(PASSWORD, logo_url="not-a-url")
    assert not store.path.exists()


@pytest.mark.parametrize("content", [
    "{not json",
    json.dumps({"version": 99, "settings": {}}),
    json.dumps({"version": 1, "settings": {"awards": "oops"}}),
    json.dumps([1, 2, 3]),
])
def test_unreadable_file_falls_back_to_defaults(store, content, caplog):
    store.path.write_text(content, encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="signature_generator.settings_store"):
        assert store.get_settings() == SignatureSettings()
    assert caplog.records


def test_verify_password(store):
    assert store.verify_password(PASSWORD)
    assert not store.verify_password("nope")
    assert not store.verify_password(None)


def test_uploads_return_data_url_inline(store, caplog):
    url = "data:image/png;base64,AAAA"
    with caplog.at_level(logging.WARNING):
        assert store.upload_photo(url) == url
    assert settings_store.INLINE_UPLOAD_WARNING in caplog.text

    assert store.upload_award(PASSWORD, url) == url
    with pytest.raises(AuthorizationError):
        store.upload_award("wrong", url)
    with pytest.raises(ValueError):
        store.upload_photo("")


def test_delete_image_checks_password(store):
    store.delete_image(PASSWORD, "data:image/png;base64,AAAA")
    with pytest.raises(AuthorizationError):
        store.delete_image("wrong", "https://x/a.png")


def test_storage_status_reports_unconfigured(store):
    status = store.storage_status()
    assert status.configured is False
    assert "base64" in status.message


# --- backend selection ---

def test_make_backend_local_without_api_url(monkeypatch):
    monkeypatch.setattr(settings_store, "API_URL", "")
    assert isinstance(make_backend(), LocalSettingsStore)


def test_make_backend_uses_api_client(monkeypatch):
    monkeypatch.setattr(settings_store, "API_URL", "https://sig.example.com")
    backend = make_backend()
    assert isinstance(backend, SignatureApiClient)
    assert backend.base_url == "https://sig.example.com"
