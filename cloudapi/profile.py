"""
Client and HTTP profiles. Read-only configuration that selects the signing
scheme, HTTP method, protocol, endpoint override and request timeout.
"""

from __future__ import annotations

from dataclasses import dataclass, field

SIGN_HMAC_SHA1 = "HmacSHA1"
SIGN_HMAC_SHA256 = "HmacSHA256"
SIGN_TC3 = "TC3-HMAC-SHA256"

LEGACY_SIGN_METHODS = (SIGN_HMAC_SHA1, SIGN_HMAC_SHA256)
SIGN_METHODS = LEGACY_SIGN_METHODS + (SIGN_TC3,)

REQ_METHODS = ("GET", "POST")

DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class HttpProfile:
    """Transport settings. `endpoint` overrides the service's default host."""

    req_method: str = "POST"
    protocol: str = "https://"
    endpoint: str = ""
    req_timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        method = self.req_method.upper()
        if method not in REQ_METHODS:
            raise ValueError(
                f"Unsupported request method {self.req_method!r} (must be one of {REQ_METHODS})"
            )
        object.__setattr__(self, "req_method", method)
        if self.req_timeout <= 0:
            raise ValueError(f"req_timeout must be positive, got {self.req_timeout}")


@dataclass(frozen=True)
class ClientProfile:
    sign_method: str = SIGN_TC3
    http_profile: HttpProfile = field(default_factory=HttpProfile)

    def __post_init__(self) -> None:
        if self.sign_method not in SIGN_METHODS:
            raise ValueError(
                f"Unsupported sign method {self.sign_method!r} (must be one of {SIGN_METHODS})"
            )

    @property
    def uses_tc3(self) -> bool:
        return self.sign_method == SIGN_TC3
