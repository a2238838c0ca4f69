import base64
import datetime
from collections.abc import Callable
from typing import Any

import httpx
import jwt
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID
from flask import Flask

KID = "SsZsBNhZcF3Q9S4trpQBTByNRRI"
OTHER_KID = "nOo3ZDrODXEK1jKWhXslHR_KXEg"


@pytest.fixture()
def app():
    app = Flask(__name__)
    app.config["TESTING"] = True
    return app


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _self_signed_body(key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey) -> str:
    """Base64 DER certificate, the way the discovery endpoint publishes x5c."""
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "accounts.accesscontrol.windows.net")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .sign(key, hashes.SHA256())
    )
    return base64.b64encode(cert.public_bytes(serialization.Encoding.DER)).decode("ascii")


@pytest.fixture(scope="session")
def certificate_body(rsa_key: rsa.RSAPrivateKey) -> str:
    return _self_signed_body(rsa_key)


@pytest.fixture(scope="session")
def other_certificate_body() -> str:
    return _self_signed_body(rsa.generate_private_key(public_exponent=65537, key_size=2048))


@pytest.fixture(scope="session")
def ec_certificate_body() -> str:
    """A P-256 certificate, which RS256 cannot verify against."""
    return _self_signed_body(ec.generate_private_key(ec.SECP256R1()))


@pytest.fixture()
def discovery_payload(certificate_body: str, other_certificate_body: str) -> dict[str, Any]:
    """Discovery document shaped like Azure AD's."""
    return {
        "keys": [
            {
                "kty": "RSA",
                "use": "sig",
                "kid": OTHER_KID,
                "x5t": OTHER_KID,
                "n": "oaLLT9hkcSj2tGfZsjbu7Xz1Krs0qEicXPmEsJKOBQHauZ_kRM1HdEkgOJbUznUspE6xOuOSXjlzErqBxXAu4SCvcvVOCYG2v9G3-uIrLF5dstD0sYHBo1VomtKxzF90Vslrkn6rNQgUGIWgvuQTxm1uRklYFPEcTIRw0LnYknzJ06GC9ljKR617wABVrZNkBuDgQKj37qcyxoaxIGdxEcmVFZXJyrxDgdXh9owRmZn6LIJlGjZ9m59emfuwnBnsIQG7DirJwe9SXrLXnexRQWqyzCdkYaOqkpKrsjuxUj2-MHX31FqsdpJJsOAvYXGOYBKJRjhGrGdONVrZdUdTBQ",
                "e": "AQAB",
                "x5c": [other_certificate_body],
            },
            {
                "kty": "RSA",
                "use": "sig",
                "kid": KID,
                "x5t": KID,
                "n": "uHPewhg4WC3eLVPkEFlj7RDtaKYWXCI5G-LPVzsMKOuIu7qQQbeytIA6P6HT9_iIRt8zNQvuw4P9vbNjgUCpI6vfZGsjk3XuCVoB_bAIhvuBcQh9ePH2yEwS5reR-NrG1PsqzobnZZuigKCoDmuOb_UDx1DiVyNCbMBlEG7UzTQwLf5NP6HaRHx027URJeZvPAWY7zjHlSOuKoS_d1yUveaBFIgZqPWLCg44ck4gvik45HsNVWT9zYfT74dvUSSrMSR-SHFT7Hy1XjbVXpHJHNNAXpPoGoWXTuc0BxMsB4cqjfJqoftFGOG4x32vEzakArLPxAKwGvkvu0jToAyvSQ",
                "e": "AQAB",
                "x5c": [certificate_body],
            },
        ]
    }


@pytest.fixture()
def make_token(rsa_key: rsa.RSAPrivateKey) -> Callable[..., str]:
    """
    Factory fixture signing RS256 tokens with the test key.

    Usage in tests:
        token = make_token({"sub": "u1"}, kid="k1")
    """

    def _make(claims: dict[str, Any] | None = None, *, kid: str | None = KID) -> str:
        now = int(datetime.datetime.now(datetime.timezone.utc).timestamp())
        payload = {"sub": "u1", "iss": "ISS", "aud": "AUD", "iat": now, "exp": now + 600}
        payload.update(claims or {})
        headers = {"kid": kid} if kid is not None else None
        return jwt.encode(payload, rsa_key, algorithm="RS256", headers=headers)

    return _make


class FakeDiscovery:
    """
    Scripted discovery endpoint for httpx.MockTransport.

    Each request consumes the next reply: an httpx.Response, or an exception
    class raised as a transport error. The last reply repeats once the
    script runs out.
    """

    def __init__(self, *replies: httpx.Response | type[httpx.RequestError]):
        self._replies = list(replies)
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, type):
            raise reply("connection refused", request=request)
        # fresh response per request; a Response cannot be sent twice
        return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture()
def fake_discovery(discovery_payload: dict[str, Any]) -> Callable[..., FakeDiscovery]:
    """Factory fixture; with no replies the endpoint always answers the valid payload."""

    def _make(*replies: httpx.Response | type[httpx.RequestError]) -> FakeDiscovery:
        return FakeDiscovery(*(replies or (httpx.Response(200, json=discovery_payload),)))

    return _make


@pytest.fixture()
def kid() -> str:
    """kid of the key that signs make_token tokens."""
    return KID
