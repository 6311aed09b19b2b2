"""
OAuth 1.0a Signer Module

This module produces the ``Authorization`` header value for OAuth 1.0a
HMAC-SHA1 signed requests (RFC 5849). Only the URL query parameters take
part in the signature; request bodies (JSON or multipart) never do.
"""

import base64
import hashlib
import hmac
import secrets
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

from data.models import Credentials

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"


def percent_encode(value: str) -> str:
    """
    Percent-encode a string per RFC 3986.

    Letters, digits and ``-._~`` pass through; every other UTF-8 byte
    becomes ``%XX`` with uppercase hex.

    Args:
        value: The text to encode.

    Returns:
        str: The encoded text.
    """
    return quote(str(value).encode("utf-8"), safe="~")


def canonical_parameter_string(params: Mapping[str, str]) -> str:
    """
    Build the normalized parameter string used in the signature base string.

    Entries are encoded first, then sorted by encoded key and encoded value,
    so insertion order never changes the result.

    Args:
        params: Parameter name to value mapping.

    Returns:
        str: ``k=v`` pairs joined with ``&``.
    """
    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in params.items())
    return "&".join(f"{k}={v}" for k, v in encoded)


def signature_base_string(method: str, base_url: str, params: Mapping[str, str]) -> str:
    """Return ``METHOD&enc(base_url)&enc(canonical_params)``."""
    return "&".join([
        method.upper(),
        percent_encode(base_url),
        percent_encode(canonical_parameter_string(params)),
    ])


@dataclass(frozen=True)
class SigningRequest:
    """The parts of an HTTP request that the signature covers."""
    method: str
    base_url: str
    query_params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        method = self.method.upper()
        if method not in ("GET", "POST"):
            raise ValueError(f"Unsupported HTTP method for signing: {self.method}")
        if "?" in self.base_url:
            raise ValueError(f"base_url must not contain a query string: {self.base_url}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "query_params", {str(k): str(v) for k, v in self.query_params.items()})

    @classmethod
    def from_url(cls, method: str, url: str,
                 params: Optional[Mapping[str, str]] = None) -> "SigningRequest":
        """
        Split a URL that may carry a query string into base URL and parameters.

        Args:
            method: HTTP method.
            url: Full URL, optionally with a query component.
            params: Extra query parameters merged over the URL's own.

        Returns:
            SigningRequest: The request with ``base_url`` free of any query.

        Raises:
            ValueError: If the query string cannot be parsed.
        """
        parts = urlsplit(url)
        query: Dict[str, str] = {}
        if parts.query:
            for key, value in parse_qsl(parts.query, keep_blank_values=True, strict_parsing=True):
                if key in query:
                    raise ValueError(f"Duplicate query parameter {key!r} in {url}")
                query[key] = value
        query.update(params or {})
        base_url = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
        return cls(method=method, base_url=base_url, query_params=query)


class OAuthSigner:
    """Signs requests with the HMAC-SHA1 method for one set of credentials."""

    def __init__(self, credentials: Credentials,
                 nonce_factory: Optional[Callable[[], str]] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.credentials = credentials
        self._nonce_factory = nonce_factory or (lambda: secrets.token_hex(16))
        self._clock = clock or time.time

    @property
    def signing_key(self) -> str:
        return (f"{percent_encode(self.credentials.consumer_secret)}"
                f"&{percent_encode(self.credentials.access_token_secret)}")

    def oauth_parameters(self, nonce: Optional[str] = None,
                         timestamp: Optional[int] = None) -> Dict[str, str]:
        """The six ``oauth_*`` parameters that precede the signature."""
        return {
            "oauth_consumer_key": self.credentials.consumer_key,
            "oauth_nonce": nonce if nonce is not None else self._nonce_factory(),
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_timestamp": str(timestamp if timestamp is not None else int(self._clock())),
            "oauth_token": self.credentials.access_token,
            "oauth_version": OAUTH_VERSION,
        }

    def signature(self, request: SigningRequest, oauth_params: Mapping[str, str]) -> str:
        """Base64 HMAC-SHA1 over the request's signature base string."""
        params = dict(request.query_params)
        params.update(oauth_params)
        base_string = signature_base_string(request.method, request.base_url, params)
        digest = hmac.new(
            self.signing_key.encode("utf-8"),
            base_string.encode("utf-8"),
            hashlib.sha1,
        ).digest()
        return base64.b64encode(digest).decode("ascii")

    def sign(self, request: SigningRequest, nonce: Optional[str] = None,
             timestamp: Optional[int] = None) -> str:
        """
        Produce the ``Authorization`` header value for a request.

        A fresh nonce and the current time are used unless given explicitly.

        Args:
            request: Method, base URL and query parameters to sign.
            nonce: Fixed nonce (tests, reproducible signatures).
            timestamp: Fixed Unix timestamp in seconds.

        Returns:
            str: ``OAuth oauth_consumer_key="...", ..., oauth_version="1.0"``.
        """
        oauth_params = self.oauth_parameters(nonce=nonce, timestamp=timestamp)
        oauth_params["oauth_signature"] = self.signature(request, oauth_params)
        header_params = ", ".join(
            f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in sorted(oauth_params.items())
        )
        return f"OAuth {header_params}"
