"""Shared fixtures for the OCM tests."""

import base64
import json
import time

import jwt
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

SECRET = "ocm-tests-signing-key-0123456789abcdef"


class MemoryKeyring(KeyringBackend):
    """Keyring backend that keeps secrets in a dictionary."""

    priority = 1

    def __init__(self):
        super().__init__()
        self.entries = {}

    def get_password(self, service, username):
        return self.entries.get((service, username))

    def set_password(self, service, username, password):
        self.entries[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise PasswordDeleteError("not found")


def _make_token(typ="Bearer", expires_in=None, **claims):
    """Build a signed token. ``expires_in`` is in seconds, None means no expiry."""
    now = int(time.time())
    payload = {"iat": now, **claims}
    if typ is not None:
        payload["typ"] = typ
    if expires_in is not None:
        payload["exp"] = now + int(expires_in)
    return jwt.encode(payload, SECRET, algorithm="HS256")


def _make_encrypted_token(header=None):
    header = header or {"alg": "RSA-OAEP", "enc": "A256GCM", "cty": "JWT"}
    encoded = base64.b64encode(json.dumps(header).encode()).decode().rstrip("=")
    return ".".join([encoded, "a2V5", "aXY", "Y2lwaGVy", "dGFn"])


@pytest.fixture
def make_token():
    return _make_token


@pytest.fixture
def make_encrypted_token():
    return _make_encrypted_token


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    """Isolate every test from the real home directory and OCM variables."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    for name in ("OCM_CONFIG", "OCM_KEYRING", "OCM_URL"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Point OCM_CONFIG at a file that doesn't exist yet."""
    path = tmp_path / "config" / "ocm.json"
    monkeypatch.setenv("OCM_CONFIG", str(path))
    return path


@pytest.fixture
def memory_keyring(monkeypatch):
    """Select an in-memory keyring backend through OCM_KEYRING."""
    backend = MemoryKeyring()
    monkeypatch.setattr("ocmcli.store.available_backends", lambda: {"memory": backend})
    monkeypatch.setenv("OCM_KEYRING", "memory")
    return backend
