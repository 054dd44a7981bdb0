"""Shared fixtures: a fake Okta org, a configured app and a test client."""
import json
import time
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from app import create_app
from config import AppConfig
from WorkforceOIDC.WorkforceOIDC import WorkforceOIDC

ISSUER = "https://tc3.okta.example"
CLIENT_ID = "tc3-rewards-client"
CLIENT_SECRET = "tc3-rewards-secret"


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")


class FakeOkta:
    """Discovery, JWKS, token and userinfo endpoints of an Okta org."""

    def __init__(self, userinfo_endpoint=True):
        self.key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        self.userinfo = {"sub": "00u1", "name": "Jane Doe", "preferred_username": "jane@tc3.example"}
        self.discovery = {
            "issuer": ISSUER,
            "authorization_endpoint": f"{ISSUER}/oauth2/v1/authorize",
            "token_endpoint": f"{ISSUER}/oauth2/v1/token",
            "jwks_uri": f"{ISSUER}/oauth2/v1/keys",
            "end_session_endpoint": f"{ISSUER}/oauth2/v1/logout",
            "scopes_supported": ["openid", "profile", "email"],
        }
        if userinfo_endpoint:
            self.discovery["userinfo_endpoint"] = f"{ISSUER}/oauth2/v1/userinfo"

    def jwks(self):
        jwk = json.loads(jwt.algorithms.RSAAlgorithm.to_jwk(self.key.public_key()))
        jwk.update({"kid": "tc3-key", "use": "sig", "alg": "RS256"})
        return {"keys": [jwk]}

    def get(self, url, **kwargs):
        if url == f"{ISSUER}/.well-known/openid-configuration":
            return FakeResponse(self.discovery)
        if url == self.discovery["jwks_uri"]:
            return FakeResponse(self.jwks())
        if url == self.discovery.get("userinfo_endpoint"):
            return FakeResponse(self.userinfo)
        return FakeResponse({"error": "not_found"}, status_code=404)

    def id_token(self, nonce, /, **overrides):
        claims = {
            "iss": ISSUER,
            "aud": CLIENT_ID,
            "sub": self.userinfo["sub"],
            "name": self.userinfo["name"],
            "iat": int(time.time()),
            "exp": int(time.time()) + 3600,
            "nonce": nonce,
        }
        claims.update(overrides)
        return jwt.encode(claims, self.key, algorithm="RS256", headers={"kid": "tc3-key"})

    def token_response(self, nonce, /, **overrides):
        return {
            "token_type": "Bearer",
            "expires_in": 3600,
            "access_token": "okta-access-token",
            "scope": "openid profile",
            "id_token": self.id_token(nonce, **overrides),
        }


@pytest.fixture
def okta():
    return FakeOkta()


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        org_uri=ISSUER,
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        session_dir=str(tmp_path / "sessions"),
    )


@pytest.fixture
def oidc(okta, config):
    middleware = WorkforceOIDC(config.oidc_config, start=False)
    with patch("requests.get", side_effect=okta.get):
        middleware.discover()
    middleware.emit("ready")
    return middleware


@pytest.fixture
def app(config, oidc):
    flask_app = create_app(config, oidc=oidc)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def start_login(client):
    """GET /login and return (state, nonce) from the provider redirect."""
    r = client.get("/login")
    query = parse_qs(urlparse(r.headers["Location"]).query)
    return query["state"][0], query["nonce"][0]


def login(client, okta, id_claims=None):
    """Complete the authorization code flow; id_claims override ID token claims."""
    state, nonce = start_login(client)
    with patch("requests.post", return_value=FakeResponse(okta.token_response(nonce, **(id_claims or {})))), patch(
        "requests.get", side_effect=okta.get
    ):
        return client.get("/authorization-code/callback", query_string={"code": "authcode-123456", "state": state})
