"""
Shared fixtures for token tests
"""

import json
import threading
from datetime import datetime, timezone

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from jwt.utils import base64url_decode

from apns_auth.clock import FixedClock
from apns_auth.exceptions import SigningFailed
from apns_auth.signing import ES256Signer

TEAM_ID = "TEAM123456"
KEY_ID = "KEY7890ABC"
T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class CountingSigner:
    """Wraps a real signer and counts invocations"""

    def __init__(self, inner):
        self.inner = inner
        self.calls = 0
        self._lock = threading.Lock()

    def sign(self, data: bytes) -> bytes:
        with self._lock:
            self.calls += 1
        return self.inner.sign(data)


class FailingSigner:
    def __init__(self, error=None):
        self.error = error or SigningFailed("key unavailable")
        self.calls = 0

    def sign(self, data: bytes) -> bytes:
        self.calls += 1
        raise self.error


def split_token(token: str):
    """Strip the bearer prefix and decode the three segments"""
    assert token.startswith("bearer ")
    body = token[len("bearer "):]
    parts = body.split(".")
    assert len(parts) == 3
    header_raw = base64url_decode(parts[0])
    payload_raw = base64url_decode(parts[1])
    signature = base64url_decode(parts[2])
    return parts, header_raw, payload_raw, signature


def decode_claims(token: str):
    _, header_raw, payload_raw, _ = split_token(token)
    return json.loads(header_raw), json.loads(payload_raw)


@pytest.fixture
def private_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def private_key_pem(private_key):
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture
def signer(private_key):
    return CountingSigner(ES256Signer(private_key))


@pytest.fixture
def clock():
    return FixedClock(T0)
