"""
API credentials for the cloud vendor's REST API.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Credential:
    """Secret id/key pair plus an optional session token for temporary keys."""

    secret_id: str
    secret_key: str
    token: str = ""

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks
        return f"Credential(secret_id={mask_secret_id(self.secret_id)!r})"


def mask_secret_id(secret_id: str) -> str:
    """Return the secret id with all but its last 4 characters hidden."""
    if len(secret_id) <= 4:
        return "*" * len(secret_id)
    return "*" * (len(secret_id) - 4) + secret_id[-4:]
