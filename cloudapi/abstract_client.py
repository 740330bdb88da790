"""
Base client for the cloud vendor's REST API: sign, dispatch, parse envelope.

One call is one HTTP attempt. Each call draws its own timestamp and nonce,
so a single client instance can be shared across threads.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from typing import Any

import httpx

from cloudapi.credential import Credential, mask_secret_id
from cloudapi.errors import HttpStatusError, ServiceError, TransportError
from cloudapi.params import flatten_params
from cloudapi.profile import ClientProfile
from cloudapi.sign import (
    Clock,
    NonceSource,
    build_tc3_headers,
    capture_timestamp,
    format_request_data,
    random_nonce,
    serialize_body,
)

logger = logging.getLogger(__name__)

SDK_VERSION = "SDK_PYTHON_0.1.0"
_PATH = "/"


class AbstractClient:
    """
    Signs and dispatches API actions for one service endpoint.

    Service clients subclass this with their default endpoint and API version
    and expose typed methods on top of call().
    """

    def __init__(
        self,
        endpoint: str,
        version: str,
        credential: Credential,
        region: str = "",
        profile: ClientProfile | None = None,
        clock: Clock | None = None,
        nonce_source: NonceSource | None = None,
        http: httpx.Client | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.api_version = version
        self.credential = credential
        self.region = region
        self.profile = profile or ClientProfile()
        self._clock = clock or time.time
        self._nonce_source = nonce_source or random_nonce
        self._http = http or httpx.Client(timeout=self.profile.http_profile.req_timeout)

    @property
    def host(self) -> str:
        """Profile endpoint override, else the service default."""
        return self.profile.http_profile.endpoint or self.endpoint

    @property
    def url(self) -> str:
        return f"{self.profile.http_profile.protocol}{self.host}{_PATH}"

    def build_request(self, action: str, params: Mapping[str, Any]) -> httpx.Request:
        """Build the signed request for an action without sending it."""
        http_profile = self.profile.http_profile
        timestamp = capture_timestamp(self._clock)

        if self.profile.uses_tc3:
            payload = serialize_body(params)
            headers = build_tc3_headers(
                action,
                payload,
                credential=self.credential,
                host=self.host,
                region=self.region,
                api_version=self.api_version,
                sdk_version=SDK_VERSION,
                timestamp=timestamp,
            )
            return self._http.build_request(
                "POST", self.url, content=payload.encode("utf-8"), headers=headers,
                timeout=http_profile.req_timeout,
            )

        data = format_request_data(
            action,
            flatten_params(params),
            credential=self.credential,
            region=self.region,
            api_version=self.api_version,
            sdk_version=SDK_VERSION,
            sign_method=self.profile.sign_method,
            req_method=http_profile.req_method,
            host=self.host,
            path=_PATH,
            timestamp=timestamp,
            nonce=self._nonce_source(),
        )
        if http_profile.req_method == "GET":
            return self._http.build_request("GET", self.url, params=data, timeout=http_profile.req_timeout)
        return self._http.build_request("POST", self.url, data=data, timeout=http_profile.req_timeout)

    def call(self, action: str, params: Mapping[str, Any] | None = None) -> dict:
        """
        Invoke an API action and return the Response payload.

        Raises:
            TransportError: connection failure, timeout, or malformed body
            HttpStatusError: HTTP status other than 200
            ServiceError: Response.Error present in the body
        """
        request = self.build_request(action, params or {})
        logger.debug(
            "Calling %s on %s (sign=%s, secret_id=%s)",
            action, self.host, self.profile.sign_method,
            mask_secret_id(self.credential.secret_id),
        )

        try:
            resp = self._http.send(request)
        except httpx.TransportError as e:
            logger.warning("%s transport failure on %s: %s", action, self.host, e)
            raise TransportError(str(e) or type(e).__name__) from e

        if resp.status_code != 200:
            logger.warning("%s returned HTTP %d", action, resp.status_code)
            raise HttpStatusError(resp.status_code, resp.reason_phrase)

        return self._parse_envelope(action, resp)

    @staticmethod
    def _parse_envelope(action: str, resp: httpx.Response) -> dict:
        try:
            body = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(f"{action}: response body is not JSON") from e

        payload = body.get("Response") if isinstance(body, dict) else None
        if not isinstance(payload, dict):
            raise TransportError(f"{action}: response has no Response envelope")

        error = payload.get("Error")
        if error and not isinstance(error, dict):
            raise TransportError(f"{action}: malformed Error in response")
        if error:
            request_id = payload.get("RequestId", "")
            code = error.get("Code", "")
            logger.warning(
                "%s failed: %s %s (request_id=%s)",
                action, code, error.get("Message", ""), request_id,
            )
            raise ServiceError(code, error.get("Message", ""), request_id)

        return payload

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()

    def __enter__(self) -> AbstractClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
