from unittest.mock import MagicMock

import pytest
import requests

from signature_generator.api_client import SignatureApiClient
from signature_generator.errors import AuthorizationError, StorageError
from signature_generator.models import SignatureSettings

BASE = "https://sig.example.com"


def _response(status=200, body=None, json_error=False):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 400
    if json_error:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


def _client(*responses):
    session = MagicMock()
    session.request.side_effect = list(responses)
    return SignatureApiClient(BASE + "/", timeout=3, session=session), session


def test_get_settings_parses_wire_shape():
    client, session = _client(_response(body={
        "awards": ["https://x/a.png"], "companyTagline": "Hi", "logoUrl": None,
    }))

    settings = client.get_settings()

    assert settings == SignatureSettings(awards=["https://x/a.png"], company_tagline="Hi")
    session.request.assert_called_once_with("GET", f"{BASE}/api/settings", json=None, timeout=3)


def test_update_settings_posts_patch_then_refetches():
    client, session = _client(
        _response(body={"success": True}),
        _response(body={"awards": [], "companyTagline": "New", "logoUrl": ""}),
    )

    saved = client.update_settings("pw", company_tagline="New")

    assert saved.company_tagline == "New"
    first = session.request.call_args_list[0]
    assert first.args == ("POST", f"{BASE}/api/settings")
    assert first.kwargs["json"] == {"password": "pw", "companyTagline": "New"}


def test_unauthorized_raises_authorization_error():
    client, _ = _client(_response(401, {"error": "Invalid password"}))
    with pytest.raises(AuthorizationError, match="Invalid password"):
        client.update_settings("bad", awards=[])


def test_verify_password():
    client, session = _client(_response(body={"valid": True}), _response(401, {}))
    assert client.verify_password("pw") is True
    assert client.verify_password("bad") is False
    assert session.request.call_args_list[0].kwargs["json"] == {"password": "pw"}


def test_server_error_raises_storage_error():
    client, _ = _client(_response(500, {"error": "Blob storage unavailable"}))
    with pytest.raises(StorageError, match="Blob storage unavailable"):
        client.get_settings()


def test_non_json_body_raises_storage_error():
    client, _ = _client(_response(200, json_error=True))
    with pytest.raises(StorageError):
        client.storage_status()


def test_transport_failure_raises_storage_error():
    session = MagicMock()
    session.request.side_effect = requests.ConnectionError("refused")
    client = SignatureApiClient(BASE, session=session)
    with pytest.raises(StorageError, match="Could not reach"):
        client.get_settings()


def test_upload_photo_returns_hosted_url():
    client, session = _client(_response(body={"url": "https://cdn/x.png", "warning": "slow"}))
    assert client.upload_photo("data:image/png;base64,AAAA") == "https://cdn/x.png"
    assert session.request.call_args.kwargs["json"] == {"imageData": "data:image/png;base64,AAAA"}


def test_upload_without_url_raises():
    client, _ = _client(_response(body={}))
    with pytest.raises(StorageError):
        client.upload_award("pw", "data:image/png;base64,AAAA")


def test_delete_image_sends_delete():
    client, session = _client(_response(body={"success": True}))
    client.delete_image("pw", "https://cdn/x.png")
    session.request.assert_called_once_with(
        "DELETE", f"{BASE}/api/delete-image",
        json={"password": "pw", "imageUrl": "https://cdn/x.png"}, timeout=3,
    )


def test_storage_status():
    client, _ = _client(_response(body={"configured": True, "message": "OK", "provider": "vercel-blob"}))
    status = client.storage_status()
    assert status.configured is True
    assert status.provider == "vercel-blob"
