# src/expunge/contracts/secrets.py
"""SecretManager protocol for credential resolution."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class SecretManager(Protocol):
    """Resolves named secrets.

    Implementations fail closed: an unknown or unreadable secret raises
    SecretNotFoundError, never returns an empty value.
    """

    def resolve(self, name: str) -> str:
        """Return the secret value for name.

        Raises:
            SecretNotFoundError: If the secret cannot be resolved
        """
        ...
