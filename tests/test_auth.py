"""Tests for HMAC request signing."""

import hashlib
import hmac
import re

import httpx

from veracode_tools.api.auth import SCHEME, VeracodeHmacAuth, sign

API_ID = "0123456789abcdef0123456789abcdef"
API_KEY = "00112233445566778899aabbccddeeff" * 4
NONCE = "a0b1c2d3e4f5a6b7c8d9e0f1a2b3c4d5"

HEADER_RE = re.compile(
    rf"^{SCHEME} id=(?P<id>[0-9a-f]+),ts=(?P<ts>\d+),nonce=(?P<nonce>[0-9a-f]{{32}}),sig=(?P<sig>[0-9a-f]{{64}})$"
)


def _expected_signature(host, url, method, ts, nonce):
    key = bytes.fromhex(API_KEY)
    k_nonce = hmac.new(key, bytes.fromhex(nonce), hashlib.sha256).digest()
    k_date = hmac.new(k_nonce, str(ts).encode(), hashlib.sha256).digest()
    k_sig = hmac.new(k_date, b"vcode_request_version_1", hashlib.sha256).digest()
    data = f"id={API_ID}&host={host}&url={url}&method={method}"
    return hmac.new(k_sig, data.encode(), hashlib.sha256).hexdigest()


def test_sign_header_shape_and_signature():
    header = sign(API_ID, API_KEY, "api.veracode.com", "/appsec/v1/applications", "get",
                  timestamp=1700000000000, nonce=NONCE)
    match = HEADER_RE.match(header)
    assert match
    assert match["ts"] == "1700000000000"
    assert match["sig"] == _expected_signature(
        "api.veracode.com", "/appsec/v1/applications", "GET", 1700000000000, NONCE
    )


def test_sign_uses_fresh_nonce_per_call():
    first = HEADER_RE.match(sign(API_ID, API_KEY, "h", "/", "GET", timestamp=1))
    second = HEADER_RE.match(sign(API_ID, API_KEY, "h", "/", "GET", timestamp=1))
    assert first["nonce"] != second["nonce"]


def test_auth_flow_signs_path_and_query():
    auth = VeracodeHmacAuth(API_ID, API_KEY, clock=lambda: 1700000000.5)
    request = httpx.Request("GET", "https://api.veracode.com/appsec/v1/applications?name=My%20App")
    signed = next(auth.auth_flow(request))

    match = HEADER_RE.match(signed.headers["Authorization"])
    assert match
    assert match["id"] == API_ID
    assert match["ts"] == "1700000000500"
    assert match["sig"] == _expected_signature(
        "api.veracode.com", "/appsec/v1/applications?name=My%20App", "GET",
        1700000000500, match["nonce"],
    )
