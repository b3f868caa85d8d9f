"""
Base classes for credential lookup.

Task payloads that need a secret (issue-tracker tokens, account e-mail)
read it from a credential source when the node's own config does not
carry it. A missing credential is not an error here; the backend rejects
unauthenticated calls itself.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from dotenv import dotenv_values


@dataclass
class CredentialSpec:
    """Specification for a single credential."""

    env_var: str
    """Environment variable name (e.g., 'JIRA_API_TOKEN')"""

    task_types: list[str] = field(default_factory=list)
    """Backend task types whose payload carries this credential"""

    help_url: str = ""
    """URL where user can obtain this credential"""

    description: str = ""
    """Human-readable description of what this credential is for"""


@runtime_checkable
class CredentialSource(Protocol):
    """Anything that can look up a named credential. A plain dict qualifies."""

    def get(self, name: str) -> str | None: ...


class CredentialManager:
    """
    Environment-backed credential source.

    Usage:
        # Production
        creds = CredentialManager()
        token = creds.get("jira_api_token")  # None when unset

        # Testing
        creds = CredentialManager.for_testing({"jira_api_token": "test-token"})
    """

    def __init__(
        self,
        specs: dict[str, CredentialSpec] | None = None,
        _overrides: dict[str, str] | None = None,
        dotenv_path: Path | None = None,
    ):
        if specs is None:
            from . import CREDENTIAL_SPECS

            specs = CREDENTIAL_SPECS
        self._specs = specs
        self._overrides = _overrides or {}
        self._dotenv_path = dotenv_path

    @classmethod
    def for_testing(
        cls,
        overrides: dict[str, str],
        specs: dict[str, CredentialSpec] | None = None,
        dotenv_path: Path | None = None,
    ) -> CredentialManager:
        """Create a CredentialManager pre-loaded with test values."""
        return cls(specs=specs, _overrides=overrides, dotenv_path=dotenv_path)

    def _get_raw(self, name: str) -> str | None:
        """Overrides first, then os.environ, then the .env file."""
        if name in self._overrides:
            return self._overrides[name]

        spec = self._specs[name]
        env_value = os.environ.get(spec.env_var)
        if env_value:
            return env_value

        return self._read_from_dotenv(spec.env_var)

    def _read_from_dotenv(self, env_var: str) -> str | None:
        # dotenv_values reads the file without touching os.environ
        dotenv_path = self._dotenv_path or Path.cwd() / ".env"
        if not dotenv_path.exists():
            return None
        return dotenv_values(dotenv_path).get(env_var)

    def get(self, name: str) -> str | None:
        """
        Get a credential value by logical name.

        Reads fresh each time, so edits to .env apply without a restart.

        Raises:
            KeyError: If the credential name is not in specs
        """
        if name not in self._specs:
            raise KeyError(f"Unknown credential '{name}'. Available: {list(self._specs.keys())}")
        return self._get_raw(name)

    def get_spec(self, name: str) -> CredentialSpec:
        if name not in self._specs:
            raise KeyError(f"Unknown credential '{name}'")
        return self._specs[name]

    def is_available(self, name: str) -> bool:
        """Check if a credential is set and non-empty."""
        value = self.get(name)
        return value is not None and value != ""

    def get_missing_for_task_types(self, task_types: list[str]) -> list[str]:
        """Credential names used by the given task types that are not set."""
        missing = []
        for cred_name, spec in self._specs.items():
            if any(t in spec.task_types for t in task_types) and not self.is_available(cred_name):
                missing.append(cred_name)
        return missing
