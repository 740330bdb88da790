"""
Request signing for the cloud vendor's REST API.

Two schemes, selected by ClientProfile.sign_method:

Legacy (HmacSHA1 / HmacSHA256), signed query string:
  sign_str  = METHOD + host + path + "?" + "&".join(k=v for k in sorted(params))
  Signature = base64(HMAC(secret_key, sign_str))

TC3-HMAC-SHA256, canonical request + derived key chain:
  canonical = POST\\n/\\n\\ncontent-type:..\\nhost:..\\n\\ncontent-type;host\\nsha256(body)
  to_sign   = TC3-HMAC-SHA256\\nts\\ndate/service/tc3_request\\nsha256(canonical)
  key       = HMAC(HMAC(HMAC("TC3"+secret, date), service), "tc3_request")
  Signature = hex(HMAC(key, to_sign))

Everything here is pure given a timestamp and nonce; the caller draws both
once per request.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import random
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable

from cloudapi.credential import Credential
from cloudapi.params import Scalar, drop_none
from cloudapi.profile import SIGN_HMAC_SHA1, SIGN_HMAC_SHA256, SIGN_TC3

Clock = Callable[[], float]
NonceSource = Callable[[], int]

TC3_ALGORITHM = SIGN_TC3
TC3_TERMINATOR = "tc3_request"
TC3_SIGNED_HEADERS = "content-type;host"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"
LANGUAGE = "en-US"
MAX_NONCE = 65535

_LEGACY_DIGESTS = {
    SIGN_HMAC_SHA1: hashlib.sha1,
    SIGN_HMAC_SHA256: hashlib.sha256,
}


def random_nonce() -> int:
    return random.randint(0, MAX_NONCE)


def capture_timestamp(clock: Clock = time.time) -> int:
    """Read the clock once and return whole unix seconds."""
    return int(clock())


def value_text(value: Scalar) -> str:
    """Text of a parameter value as the HTTP layer puts it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# -- Legacy scheme --

def sign(secret_key: str, sign_str: str, sign_method: str) -> str:
    """base64 HMAC of sign_str. Raises ValueError for non-legacy methods."""
    digest = _LEGACY_DIGESTS.get(sign_method)
    if digest is None:
        raise ValueError(
            f"Sign method {sign_method!r} invalid, only {SIGN_HMAC_SHA1} and {SIGN_HMAC_SHA256} are supported"
        )
    mac = hmac.new(secret_key.encode("utf-8"), sign_str.encode("utf-8"), digest)
    return base64.b64encode(mac.digest()).decode("utf-8")


def build_sign_string(params: Mapping[str, Scalar], req_method: str, host: str, path: str) -> str:
    """
    METHOD + host + path + "?" + sorted query string.

    Keys are sorted as plain strings and values are inserted verbatim:
    no escaping of '&' or '=' inside values.
    """
    query = "&".join(f"{k}={value_text(params[k])}" for k in sorted(params))
    return f"{req_method.upper()}{host}{path}?{query}"


def format_request_data(
    action: str,
    params: Mapping[str, Scalar],
    *,
    credential: Credential,
    region: str,
    api_version: str,
    sdk_version: str,
    sign_method: str,
    req_method: str,
    host: str,
    path: str,
    timestamp: int,
    nonce: int,
) -> dict[str, Scalar]:
    """
    Add the common request fields to flattened params and sign them.

    Returns a new mapping including the Signature field.
    """
    data: dict[str, Scalar] = dict(params)
    data["Action"] = action
    data["RequestClient"] = sdk_version
    data["Nonce"] = nonce
    data["Timestamp"] = timestamp
    data["Version"] = api_version
    data["Language"] = LANGUAGE
    if credential.secret_id:
        data["SecretId"] = credential.secret_id
    if region:
        data["Region"] = region
    if credential.token:
        data["Token"] = credential.token
    data["SignatureMethod"] = sign_method

    sign_str = build_sign_string(data, req_method, host, path)
    data["Signature"] = sign(credential.secret_key, sign_str, sign_method)
    return data


# -- TC3 scheme --

def serialize_body(params: Mapping[str, Any]) -> str:
    """Compact JSON of the unflattened request with None members removed."""
    return json.dumps(drop_none(params), separators=(",", ":"), ensure_ascii=False)


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def tc3_date(timestamp: int) -> str:
    """UTC calendar date (YYYY-MM-DD) of a unix timestamp."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


def service_name(host: str) -> str:
    """First dot-separated label of the host: iai.tencentcloudapi.com -> iai."""
    return host.split(".")[0]


def canonical_request(headers: Mapping[str, str], payload: str) -> str:
    # Signed headers are fixed: content-type then host
    canonical_headers = (
        f"content-type:{headers['Content-Type'].strip()}\n"
        f"host:{headers['Host'].strip()}\n"
    )
    return "\n".join([
        "POST",
        "/",
        "",
        canonical_headers,
        TC3_SIGNED_HEADERS,
        sha256_hex(payload),
    ])


def tc3_string_to_sign(timestamp: int, credential_scope: str, canonical: str) -> str:
    return "\n".join([
        TC3_ALGORITHM,
        str(timestamp),
        credential_scope,
        sha256_hex(canonical),
    ])


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(secret_key: str, date: str, service: str) -> bytes:
    secret_date = _hmac_sha256(("TC3" + secret_key).encode("utf-8"), date)
    secret_service = _hmac_sha256(secret_date, service)
    return _hmac_sha256(secret_service, TC3_TERMINATOR)


def sign_tc3(secret_key: str, date: str, service: str, string_to_sign: str) -> str:
    """Hex HMAC-SHA256 of string_to_sign under the date/service derived key."""
    signing_key = derive_signing_key(secret_key, date, service)
    return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def build_tc3_headers(
    action: str,
    payload: str,
    *,
    credential: Credential,
    host: str,
    region: str,
    api_version: str,
    sdk_version: str,
    timestamp: int,
) -> dict[str, str]:
    """
    Build the full signed header set for a TC3 request.

    Args:
        action: API action name, e.g. "DetectFace"
        payload: Serialized JSON body, exactly as it will be sent
        timestamp: Unix seconds; the date and signature both derive from it

    Returns:
        Headers dict including Authorization.
    """
    headers = {
        "Content-Type": JSON_CONTENT_TYPE,
        "Host": host,
        "X-TC-Action": action,
        "X-TC-RequestClient": sdk_version,
        "X-TC-Timestamp": str(timestamp),
        "X-TC-Version": api_version,
    }
    if region:
        headers["X-TC-Region"] = region
    if credential.token:
        headers["X-TC-Token"] = credential.token

    date = tc3_date(timestamp)
    service = service_name(host)
    credential_scope = f"{date}/{service}/{TC3_TERMINATOR}"

    canonical = canonical_request(headers, payload)
    string_to_sign = tc3_string_to_sign(timestamp, credential_scope, canonical)
    signature = sign_tc3(credential.secret_key, date, service, string_to_sign)

    headers["Authorization"] = (
        f"{TC3_ALGORITHM} Credential={credential.secret_id}/{credential_scope}, "
        f"SignedHeaders={TC3_SIGNED_HEADERS}, Signature={signature}"
    )
    return headers
