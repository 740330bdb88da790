"""
Unit tests for cloudapi/sign.py -- legacy and TC3 request signing.
"""

import base64
import hashlib
import hmac

import pytest

from cloudapi.credential import Credential
from cloudapi.sign import (
    build_sign_string,
    build_tc3_headers,
    canonical_request,
    capture_timestamp,
    derive_signing_key,
    format_request_data,
    random_nonce,
    serialize_body,
    service_name,
    sign,
    sign_tc3,
    tc3_date,
    tc3_string_to_sign,
    value_text,
)

SECRET_ID = "AKIDz8krbsJ5yKBZQpn74WFkmLPx3EXAMPLE"
SECRET_KEY = "Gu5t9xGARNpq86cd98joQYCN3EXAMPLE"
CRED = Credential(secret_id=SECRET_ID, secret_key=SECRET_KEY)
TS = 1700000000  # 2023-11-14T22:13:20Z
NONCE = 11886
HOST = "cvm.tencentcloudapi.com"


def _legacy(params: dict, sign_method: str = "HmacSHA256", **overrides) -> dict:
    kwargs = dict(
        credential=CRED,
        region="ap-guangzhou",
        api_version="2017-03-12",
        sdk_version="SDK_PYTHON_0.1.0",
        sign_method=sign_method,
        req_method="GET",
        host=HOST,
        path="/",
        timestamp=TS,
        nonce=NONCE,
    )
    kwargs.update(overrides)
    return format_request_data("DescribeInstances", params, **kwargs)


def _tc3(body: dict, timestamp: int = TS, credential: Credential = CRED, host: str = HOST) -> dict:
    return build_tc3_headers(
        "DescribeInstances",
        serialize_body(body),
        credential=credential,
        host=host,
        region="ap-guangzhou",
        api_version="2017-03-12",
        sdk_version="SDK_PYTHON_0.1.0",
        timestamp=timestamp,
    )


class TestLegacySign:
    def test_golden_signature_hmac_sha256(self):
        data = _legacy({"Limit": 10})
        assert data["Signature"] == "ogd3AhG+vrBlTFfP5hlR87xV0/cv/ZjOoHCJ08mwmfA="

    def test_golden_signature_hmac_sha1(self):
        data = _legacy({"Limit": 10}, sign_method="HmacSHA1")
        assert data["Signature"] == "ISs/PA6miGltwXkbV6RQ37vQp1k="

    def test_common_fields_injected(self):
        data = _legacy({"Limit": 10})
        assert data["Action"] == "DescribeInstances"
        assert data["RequestClient"] == "SDK_PYTHON_0.1.0"
        assert data["Nonce"] == NONCE
        assert data["Timestamp"] == TS
        assert data["Version"] == "2017-03-12"
        assert data["Language"] == "en-US"
        assert data["SecretId"] == SECRET_ID
        assert data["Region"] == "ap-guangzhou"
        assert data["SignatureMethod"] == "HmacSHA256"
        assert "Token" not in data

    def test_optional_fields(self):
        cred = Credential(secret_id=SECRET_ID, secret_key=SECRET_KEY, token="tok")
        data = _legacy({}, credential=cred, region="")
        assert data["Token"] == "tok"
        assert "Region" not in data

    def test_input_params_not_mutated(self):
        params = {"Limit": 10}
        _legacy(params)
        assert params == {"Limit": 10}

    def test_deterministic(self):
        assert _legacy({"Limit": 10})["Signature"] == _legacy({"Limit": 10})["Signature"]

    def test_changing_value_changes_signature(self):
        assert _legacy({"Limit": 10})["Signature"] != _legacy({"Limit": 11})["Signature"]

    def test_changing_nonce_changes_signature(self):
        assert _legacy({"Limit": 10})["Signature"] != _legacy({"Limit": 10}, nonce=1)["Signature"]

    def test_unsupported_method_raises(self):
        with pytest.raises(ValueError, match="invalid"):
            sign(SECRET_KEY, "GEThost/?a=1", "TC3-HMAC-SHA256")

    def test_sign_is_base64_hmac(self):
        expected = base64.b64encode(
            hmac.new(b"key", b"msg", hashlib.sha1).digest()
        ).decode()
        assert sign("key", "msg", "HmacSHA1") == expected


class TestBuildSignString:
    def test_sorted_and_method_uppercased(self):
        s = build_sign_string({"b": 2, "a": 1, "C": 3}, "get", "host.com", "/")
        assert s == "GEThost.com/?C=3&a=1&b=2"

    def test_sort_is_pure_string_sort(self):
        s = build_sign_string({"Key.10": "x", "Key.2": "y"}, "POST", "h", "/")
        assert s == "POSTh/?Key.10=x&Key.2=y"

    def test_values_not_escaped(self):
        s = build_sign_string({"Name": "a&b=c"}, "GET", "h", "/")
        assert s == "GETh/?Name=a&b=c"

    def test_bool_rendered_lowercase(self):
        assert build_sign_string({"On": True}, "GET", "h", "/") == "GETh/?On=true"


class TestTc3Sign:
    def test_golden_authorization(self):
        headers = _tc3({"Limit": 10})
        assert headers["Authorization"] == (
            "TC3-HMAC-SHA256 Credential=AKIDz8krbsJ5yKBZQpn74WFkmLPx3EXAMPLE/2023-11-14/cvm/tc3_request, "
            "SignedHeaders=content-type;host, "
            "Signature=3d69d3da8e82c8a7488dc882627c3c9ad030279d8db25ba43af07ec95840fc63"
        )

    def test_golden_canonical_request_hash(self):
        headers = _tc3({"Limit": 10})
        canonical = canonical_request(headers, '{"Limit":10}')
        assert hashlib.sha256(canonical.encode()).hexdigest() == (
            "c4853a41ab653c6beb6228ce40bc0e3aeeaa605adefffeb2f8532afdb471cba1"
        )

    def test_carried_headers(self):
        headers = _tc3({"Limit": 10})
        assert headers["Content-Type"] == "application/json; charset=utf-8"
        assert headers["Host"] == HOST
        assert headers["X-TC-Action"] == "DescribeInstances"
        assert headers["X-TC-RequestClient"] == "SDK_PYTHON_0.1.0"
        assert headers["X-TC-Timestamp"] == str(TS)
        assert headers["X-TC-Version"] == "2017-03-12"
        assert headers["X-TC-Region"] == "ap-guangzhou"
        assert "X-TC-Token" not in headers

    def test_session_token_header(self):
        cred = Credential(secret_id=SECRET_ID, secret_key=SECRET_KEY, token="tok")
        headers = _tc3({"Limit": 10}, credential=cred)
        assert headers["X-TC-Token"] == "tok"
        # Token is not a signed header
        assert headers["Authorization"] == _tc3({"Limit": 10})["Authorization"]

    def test_deterministic_same_instant(self):
        assert _tc3({"Limit": 10}) == _tc3({"Limit": 10})

    def test_body_change_changes_signature(self):
        assert _tc3({"Limit": 10})["Authorization"] != _tc3({"Limit": 11})["Authorization"]

    def test_timestamp_change_changes_signature(self):
        assert _tc3({"Limit": 10})["Authorization"] != _tc3({"Limit": 10}, timestamp=TS + 1)["Authorization"]

    def test_derivation_chain_is_order_dependent(self):
        date, service = "2023-11-14", "cvm"
        string_to_sign = "TC3-HMAC-SHA256\n1700000000\n2023-11-14/cvm/tc3_request\nabc"

        def _h(key: bytes, msg: str) -> bytes:
            return hmac.new(key, msg.encode(), hashlib.sha256).digest()

        # service before date
        swapped_key = _h(_h(_h(("TC3" + SECRET_KEY).encode(), service), date), "tc3_request")
        swapped = hmac.new(swapped_key, string_to_sign.encode(), hashlib.sha256).hexdigest()

        assert sign_tc3(SECRET_KEY, date, service, string_to_sign) != swapped

    def test_signing_key_chain(self):
        def _h(key: bytes, msg: str) -> bytes:
            return hmac.new(key, msg.encode(), hashlib.sha256).digest()

        expected = _h(_h(_h(("TC3" + SECRET_KEY).encode(), "2023-11-14"), "cvm"), "tc3_request")
        assert derive_signing_key(SECRET_KEY, "2023-11-14", "cvm") == expected

    def test_string_to_sign_layout(self):
        s = tc3_string_to_sign(TS, "2023-11-14/cvm/tc3_request", "canonical")
        lines = s.split("\n")
        assert lines[0] == "TC3-HMAC-SHA256"
        assert lines[1] == "1700000000"
        assert lines[2] == "2023-11-14/cvm/tc3_request"
        assert lines[3] == hashlib.sha256(b"canonical").hexdigest()


class TestCanonicalRequest:
    def _headers(self, host: str) -> dict:
        return {"Content-Type": "application/json; charset=utf-8", "Host": host}

    def test_layout(self):
        canonical = canonical_request(self._headers(HOST), "{}")
        assert canonical == (
            "POST\n/\n\n"
            "content-type:application/json; charset=utf-8\n"
            f"host:{HOST}\n"
            "\n"
            "content-type;host\n"
            + hashlib.sha256(b"{}").hexdigest()
        )

    def test_surrounding_whitespace_ignored(self):
        assert canonical_request(self._headers(f"  {HOST} "), "{}") == canonical_request(self._headers(HOST), "{}")

    def test_host_case_sensitive(self):
        assert canonical_request(self._headers(HOST.upper()), "{}") != canonical_request(self._headers(HOST), "{}")


class TestHelpers:
    def test_tc3_date_is_utc(self):
        # 23:59:59 UTC must not roll over to the next day
        assert tc3_date(1700006399) == "2023-11-14"
        assert tc3_date(1700006400) == "2023-11-15"

    def test_service_name(self):
        assert service_name("iai.tencentcloudapi.com") == "iai"
        assert service_name("cvm.ap-shanghai.tencentcloudapi.com") == "cvm"

    def test_serialize_body_compact_and_drops_none(self):
        assert serialize_body({"Limit": 10, "Offset": None}) == '{"Limit":10}'

    def test_serialize_body_keeps_unicode(self):
        assert serialize_body({"Name": "未命名"}) == '{"Name":"未命名"}'

    def test_capture_timestamp_whole_seconds(self):
        assert capture_timestamp(lambda: 1700000000.987) == 1700000000

    def test_random_nonce_range(self):
        for _ in range(200):
            assert 0 <= random_nonce() <= 65535

    def test_value_text(self):
        assert value_text(False) == "false"
        assert value_text(10) == "10"
