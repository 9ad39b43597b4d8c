# src/expunge/core/secrets.py
"""Secret managers and secret:// reference resolution.

Settings values of the form "secret://NAME" are resolved through a
SecretManager at startup. Resolution fails closed: a missing secret stops
the service before any cleanup run begins.
"""

import os
import re
from pathlib import Path

from expunge.contracts.errors import SecretNotFoundError
from expunge.contracts.secrets import SecretManager

__all__ = [
    "SECRET_REF_PREFIX",
    "EnvSecretManager",
    "FileSecretManager",
    "is_secret_ref",
    "resolve_secret_refs",
]

SECRET_REF_PREFIX = "secret://"

# Secret names map onto env var names and file names; keep them boring
_SECRET_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def _validate_name(name: str) -> None:
    if not _SECRET_NAME_PATTERN.match(name) or name in (".", ".."):
        raise SecretNotFoundError(name, "invalid secret name")


class EnvSecretManager:
    """Resolve secrets from environment variables.

    Args:
        prefix: Prepended to every secret name (e.g. "EXPUNGE_SECRET_")
    """

    def __init__(self, prefix: str = "") -> None:
        self._prefix = prefix

    def resolve(self, name: str) -> str:
        _validate_name(name)
        value = os.environ.get(f"{self._prefix}{name}")
        if value is None or not value.strip():
            raise SecretNotFoundError(name, f"environment variable {self._prefix}{name} is not set")
        return value


class FileSecretManager:
    """Resolve secrets from files in a directory (Kubernetes/Docker secret mounts).

    Each secret is one file named after the secret. A single trailing
    newline is stripped.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def resolve(self, name: str) -> str:
        _validate_name(name)
        path = self._directory / name
        try:
            value = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SecretNotFoundError(name, f"no file at {path}") from None
        except OSError as e:
            raise SecretNotFoundError(name, f"unreadable: {e}") from e
        value = value.removesuffix("\n").removesuffix("\r")
        if not value.strip():
            raise SecretNotFoundError(name, f"file {path} is empty")
        return value


def is_secret_ref(value: object) -> bool:
    """Return True if value is a "secret://NAME" reference."""
    return isinstance(value, str) and value.startswith(SECRET_REF_PREFIX)


def resolve_secret_refs(value: str | None, manager: SecretManager) -> str | None:
    """Resolve a single settings value.

    "secret://NAME" is replaced by manager.resolve("NAME"); any other value
    (including None) is returned unchanged.

    Raises:
        SecretNotFoundError: If the referenced secret cannot be resolved
    """
    if value is None or not is_secret_ref(value):
        return value
    name = value.removeprefix(SECRET_REF_PREFIX)
    if not name:
        raise SecretNotFoundError(value, "empty secret reference")
    return manager.resolve(name)
