import asyncio
import time
from datetime import datetime, timedelta

import httpx
import jwt
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from easyprop.auth.firebase import FirebaseAuthClient
from easyprop.core.exceptions import AuthenticationException, ConfigurationException, ValidationException

PROJECT_ID = "easyprop-test"
KEY_ID = "key-1"


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def certificate_pem(signing_key):
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "securetoken.test")])
    now = datetime.utcnow()
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(signing_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=1))
        .sign(signing_key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM).decode("utf-8")


@pytest.fixture
def auth_client(mocker, certificate_pem):
    client = FirebaseAuthClient(project_id=PROJECT_ID, api_key="web-key")
    mocker.patch.object(client, "_get_certificates", mocker.AsyncMock(return_value={KEY_ID: certificate_pem}))
    return client


def make_token(signing_key, kid=KEY_ID, **overrides):
    now = int(time.time())
    claims = {
        "iss": f"https://securetoken.google.com/{PROJECT_ID}",
        "aud": PROJECT_ID,
        "sub": "firebase_uid_1",
        "iat": now,
        "exp": now + 3600,
        "email": "asha@example.com",
        "name": "Asha Verma",
        "email_verified": True,
    }
    claims.update(overrides)
    return jwt.encode(claims, signing_key, algorithm="RS256", headers={"kid": kid})


def test_verify_id_token(auth_client, signing_key):
    user = asyncio.run(auth_client.verify_id_token(make_token(signing_key)))

    assert user.uid == "firebase_uid_1"
    assert user.email == "asha@example.com"
    assert user.email_verified is True
    assert user.display_name == "Asha Verma"


def test_verify_expired_token(auth_client, signing_key):
    token = make_token(signing_key, exp=int(time.time()) - 60)

    with pytest.raises(AuthenticationException) as exc_info:
        asyncio.run(auth_client.verify_id_token(token))
    assert exc_info.value.error_code == "TOKEN_EXPIRED"


@pytest.mark.parametrize("overrides", [
    {"aud": "another-project"},
    {"iss": "https://accounts.example.com"},
])
def test_verify_rejects_foreign_tokens(auth_client, signing_key, overrides):
    with pytest.raises(AuthenticationException) as exc_info:
        asyncio.run(auth_client.verify_id_token(make_token(signing_key, **overrides)))
    assert exc_info.value.message == "Invalid ID token"


def test_verify_rejects_unknown_key(auth_client, signing_key):
    with pytest.raises(AuthenticationException) as exc_info:
        asyncio.run(auth_client.verify_id_token(make_token(signing_key, kid="rotated")))
    assert exc_info.value.message == "ID token signed with an unknown key"


def test_verify_rejects_garbage(auth_client):
    with pytest.raises(AuthenticationException):
        asyncio.run(auth_client.verify_id_token("not-a-jwt"))


def test_verify_requires_project_id():
    with pytest.raises(ConfigurationException):
        asyncio.run(FirebaseAuthClient(project_id="", api_key="").verify_id_token("token"))


def test_display_name_fallbacks(auth_client, signing_key):
    user = asyncio.run(auth_client.verify_id_token(make_token(signing_key, name=None)))
    assert user.display_name == "asha"


def test_change_password(auth_client, mocker):
    call = mocker.patch.object(auth_client, "_identity_call", mocker.AsyncMock(side_effect=[
        {"idToken": "fresh-token"},
        {"localId": "firebase_uid_1"},
    ]))

    result = asyncio.run(auth_client.change_password("asha@example.com", "OldPass1", "NewPass123"))

    assert result["success"] is True
    assert [c.args[1] for c in call.await_args_list] == ["signInWithPassword", "update"]
    assert call.await_args_list[1].args[2]["idToken"] == "fresh-token"


def test_change_password_maps_identity_errors(auth_client, mocker):
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "INVALID_LOGIN_CREDENTIALS"}})

    real_client = httpx.AsyncClient
    mocker.patch(
        "easyprop.auth.firebase.httpx.AsyncClient",
        side_effect=lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )

    with pytest.raises(ValidationException) as exc_info:
        asyncio.run(auth_client.change_password("asha@example.com", "wrong", "NewPass123"))
    assert exc_info.value.message == "Current password is incorrect"
    assert exc_info.value.error_code == "INVALID_LOGIN_CREDENTIALS"


def test_change_password_requires_api_key():
    client = FirebaseAuthClient(project_id=PROJECT_ID, api_key="")
    client.api_key = ""

    with pytest.raises(ConfigurationException):
        asyncio.run(client.change_password("asha@example.com", "a", "b"))


def test_protected_route_requires_credentials(anonymous_client):
    response = anonymous_client.get("/api/v1/users/me")

    assert response.status_code == 401
    assert response.json()["detail"]["error_code"] == "UNAUTHENTICATED"
