# Copyright (c) 2025 Mahmood Khordoo
#
# This software is licensed under the MIT License.
# See the LICENSE file in the root directory for details.

"""
Credential storage for OCM.

The configuration lives either in a JSON file or in the OS keyring. The
backend is picked once, when the store is created: a non-empty ``OCM_KEYRING``
selects the keyring backend with that name, otherwise the file returned by
``config_location`` is used.

Both backends use the same serialized form. A corrupt keyring entry reads as
absent so it can't block a new login, while a corrupt file is an error the
user can go and fix.
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Mapping, Optional

import keyring
import keyring.backend
from keyring.errors import KeyringError, PasswordDeleteError
from loguru import logger
from platformdirs import user_config_path
from pydantic import ValidationError

from ocmcli.config import Config
from ocmcli.helpers import ConfigIOError

CONFIG_ENV_VAR = "OCM_CONFIG"
KEYRING_ENV_VAR = "OCM_KEYRING"

KEYRING_SERVICE = "RedHatSSO"
KEYRING_USERNAME = "ocm"

LEGACY_CONFIG_NAME = ".ocm.json"
CONFIG_DIR_NAME = "ocm"
CONFIG_FILE_NAME = "ocm.json"

DIR_MODE = 0o755
FILE_MODE = 0o600

# Short names for the keyring backends, keyed by backend module.
BACKEND_ALIASES = {
    "macOS": "keychain",
    "Windows": "wincred",
    "SecretService": "secret-service",
    "kwallet": "kwallet",
    "libsecret": "libsecret",
}
IGNORED_BACKENDS = ("chainer", "fail", "null")


def config_location(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the location of the configuration file.

    ``OCM_CONFIG`` wins. Otherwise an existing ``~/.ocm.json`` is kept for
    older installations, and new ones use the per-user config directory.
    """
    environ = os.environ if environ is None else environ
    override = environ.get(CONFIG_ENV_VAR, "")
    if override:
        return Path(override)

    legacy = Path.home() / LEGACY_CONFIG_NAME
    if legacy.exists():
        return legacy

    return user_config_path(CONFIG_DIR_NAME, appauthor=False) / CONFIG_FILE_NAME


def backend_name(backend: keyring.backend.KeyringBackend) -> str:
    """Return the short name used in ``OCM_KEYRING`` for a keyring backend."""
    module = type(backend).__module__.rsplit(".", 1)[-1]
    return BACKEND_ALIASES.get(module, module.lower())


def available_backends() -> dict[str, keyring.backend.KeyringBackend]:
    """List the usable keyring backends on this machine by short name."""
    backends: dict[str, keyring.backend.KeyringBackend] = {}
    for backend in keyring.backend.get_all_keyring():
        name = backend_name(backend)
        if name in IGNORED_BACKENDS:
            continue
        backends.setdefault(name, backend)
    return backends


def validate_backend(name: str) -> keyring.backend.KeyringBackend:
    """Return the keyring backend called ``name``.

    Raises:
        ConfigIOError: If no such backend is available
    """
    backends = available_backends()
    if name in backends:
        return backends[name]
    if backends:
        valid = ", ".join(sorted(backends))
        raise ConfigIOError(f"keyring '{name}' is not available, valid keyrings are: {valid}")
    raise ConfigIOError(f"keyring '{name}' is not available, no keyrings found")


class ConfigStore(ABC):
    """Where the configuration is persisted."""

    @abstractmethod
    def load(self) -> Optional[Config]:
        """Load the configuration, or None if nothing has been stored yet."""

    @abstractmethod
    def save(self, cfg: Config) -> None:
        """Persist the whole configuration."""

    @abstractmethod
    def remove(self) -> None:
        """Delete the stored configuration."""

    @abstractmethod
    def describe(self) -> str:
        """Human readable location of the stored configuration."""


class FileStore(ConfigStore):
    """Configuration kept in a JSON file readable only by its owner."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[Config]:
        if not self.path.exists():
            logger.debug("Config file '{}' doesn't exist", self.path)
            return None
        try:
            data = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigIOError(f"can't read config file '{self.path}': {e}") from e
        try:
            return Config.from_json(data)
        except ValidationError as e:
            raise ConfigIOError(f"can't parse config file '{self.path}': {e}") from e

    def save(self, cfg: Config) -> None:
        directory = self.path.parent
        try:
            directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigIOError(f"can't create directory {directory}: {e}") from e
        data = cfg.to_json()
        try:
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            # O_CREAT doesn't change the mode of an existing file.
            os.chmod(self.path, FILE_MODE)
        except OSError as e:
            raise ConfigIOError(f"can't write file '{self.path}': {e}") from e
        logger.debug("Saved config file '{}'", self.path)

    def remove(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise ConfigIOError(f"can't remove config file '{self.path}': {e}") from e

    def describe(self) -> str:
        return str(self.path)


class KeyringStore(ConfigStore):
    """Configuration kept as a secret in the OS keyring."""

    def __init__(self, backend: keyring.backend.KeyringBackend, name: str = ""):
        self.backend = backend
        self.name = name or backend_name(backend)

    def load(self) -> Optional[Config]:
        try:
            data = self.backend.get_password(KEYRING_SERVICE, KEYRING_USERNAME)
        except KeyringError as e:
            raise ConfigIOError(f"can't read config from keyring '{self.name}': {e}") from e
        if data is None:
            logger.debug("No config stored in keyring '{}'", self.name)
            return None
        try:
            return Config.from_json(data)
        except ValidationError as e:
            logger.debug("Ignoring unreadable config in keyring '{}': {}", self.name, e)
            return None

    def save(self, cfg: Config) -> None:
        try:
            self.backend.set_password(KEYRING_SERVICE, KEYRING_USERNAME, cfg.to_json())
        except KeyringError as e:
            raise ConfigIOError(f"can't write config to keyring '{self.name}': {e}") from e
        logger.debug("Saved config to keyring '{}'", self.name)

    def remove(self) -> None:
        try:
            self.backend.delete_password(KEYRING_SERVICE, KEYRING_USERNAME)
        except PasswordDeleteError:
            logger.debug("No config to delete in keyring '{}'", self.name)
        except KeyringError as e:
            raise ConfigIOError(f"can't delete config from keyring '{self.name}': {e}") from e

    def describe(self) -> str:
        return f"keyring '{self.name}'"


def keyring_name(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the keyring selected with ``OCM_KEYRING``, empty when unset."""
    environ = os.environ if environ is None else environ
    return environ.get(KEYRING_ENV_VAR, "")


def get_config_store(environ: Optional[Mapping[str, str]] = None) -> ConfigStore:
    """Create the store selected by the environment.

    Raises:
        ConfigIOError: If ``OCM_KEYRING`` names a backend that isn't available
    """
    name = keyring_name(environ)
    if name:
        logger.debug("Using keyring '{}' for the configuration", name)
        return KeyringStore(validate_backend(name), name)
    path = config_location(environ)
    logger.debug("Using config file '{}'", path)
    return FileStore(path)
