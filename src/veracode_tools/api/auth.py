"""VERACODE-HMAC-SHA-256 request signing for httpx."""

import hashlib
import hmac
import secrets
import time
from typing import Callable, Generator, Optional

import httpx

SCHEME = "VERACODE-HMAC-SHA-256"
REQUEST_VERSION = b"vcode_request_version_1"


def _hmac(key: bytes, message: bytes) -> bytes:
    return hmac.new(key, message, hashlib.sha256).digest()


def sign(
    api_id: str,
    api_key: str,
    host: str,
    url: str,
    method: str,
    timestamp: Optional[int] = None,
    nonce: Optional[str] = None,
) -> str:
    """Build the Authorization header value for one request.

    ``url`` is the path plus query string; ``timestamp`` is in milliseconds.
    """
    timestamp = timestamp if timestamp is not None else int(time.time() * 1000)
    nonce = nonce or secrets.token_hex(16)
    data = f"id={api_id}&host={host}&url={url}&method={method.upper()}"

    key_nonce = _hmac(bytes.fromhex(api_key), bytes.fromhex(nonce))
    key_date = _hmac(key_nonce, str(timestamp).encode())
    signature_key = _hmac(key_date, REQUEST_VERSION)
    signature = hmac.new(signature_key, data.encode(), hashlib.sha256).hexdigest()

    return f"{SCHEME} id={api_id},ts={timestamp},nonce={nonce},sig={signature}"


class VeracodeHmacAuth(httpx.Auth):
    def __init__(self, api_id: str, api_key: str, clock: Callable[[], float] = time.time):
        self.api_id = api_id
        self.api_key = api_key
        self._clock = clock

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = sign(
            self.api_id,
            self.api_key,
            host=request.url.host,
            url=request.url.raw_path.decode("ascii"),
            method=request.method,
            timestamp=int(self._clock() * 1000),
        )
        yield request
