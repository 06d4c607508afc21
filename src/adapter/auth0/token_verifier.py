"""Auth0 access token verification.

Implements TokenVerifier by checking RS256 signatures against the tenant's
JSON Web Key Set, plus the audience and issuer claims. Keys are fetched from
``<issuer>/.well-known/jwks.json`` and cached by key id with a TTL, so a key
removed from the set stops verifying once its entry expires. A token naming
an unknown key id triggers a refetch, at most once per refresh interval.
"""

import logging
import threading
import time
from typing import Any, Callable

import httpx
from cachetools import TTLCache
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JOSEError

from domain.model.errors import AuthenticationError, IdentityProviderError

logger = logging.getLogger(__name__)

SIGNING_ALGORITHM = "RS256"
JWKS_TIMEOUT_SECONDS = 5.0
JWKS_CACHE_TTL_SECONDS = 3600
JWKS_CACHE_MAX_KEYS = 16
# Minimum gap between two JWKS fetches triggered by unknown key ids
JWKS_MIN_REFRESH_INTERVAL_SECONDS = 30


class Auth0TokenVerifier:
    """Verify bearer tokens issued by an Auth0 tenant."""

    def __init__(
        self,
        issuer_base_url: str,
        audience: str,
        http_client: httpx.Client | None = None,
        jwks_cache_ttl: float = JWKS_CACHE_TTL_SECONDS,
        min_refresh_interval: float = JWKS_MIN_REFRESH_INTERVAL_SECONDS,
        timer: Callable[[], float] = time.monotonic,
    ):
        """Initialize the verifier.

        Args:
            issuer_base_url: Tenant URL, e.g. ``https://tenant.eu.auth0.com``
            audience: API identifier the tokens must be issued for
            http_client: Client used for JWKS fetches (default: new httpx.Client)
            jwks_cache_ttl: Seconds a fetched key stays trusted
            min_refresh_interval: Seconds between fetches caused by unknown key ids
            timer: Clock for the cache and the refresh interval
        """
        base = issuer_base_url.rstrip("/")
        self.issuer = f"{base}/"
        self.audience = audience
        self.jwks_url = f"{base}/.well-known/jwks.json"
        self.min_refresh_interval = min_refresh_interval
        self._http = http_client or httpx.Client(timeout=JWKS_TIMEOUT_SECONDS)
        self._timer = timer
        self._keys = TTLCache(maxsize=JWKS_CACHE_MAX_KEYS, ttl=jwks_cache_ttl, timer=timer)
        self._last_fetch_at: float | None = None
        self._lock = threading.Lock()

    def verify(self, token: str) -> dict[str, Any]:
        """Verify signature, audience and issuer. Return the token claims."""
        try:
            header = jwt.get_unverified_header(token)
        except JOSEError as e:
            raise AuthenticationError(f"Malformed token: {e}") from e

        if header.get("alg") != SIGNING_ALGORITHM:
            raise AuthenticationError(f"Unsupported signing algorithm: {header.get('alg')}")

        signing_key = self._signing_key(header.get("kid"))

        try:
            return jwt.decode(
                token,
                signing_key,
                algorithms=[SIGNING_ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
            )
        except ExpiredSignatureError as e:
            raise AuthenticationError("Token has expired") from e
        except JOSEError as e:
            raise AuthenticationError(f"Invalid token: {e}") from e

    def _signing_key(self, kid: str | None) -> dict[str, Any]:
        if not kid:
            raise AuthenticationError("Token header missing 'kid'")

        with self._lock:
            key = self._keys.get(kid)
            if key is None and self._refresh_allowed():
                self._refresh_jwks()
                key = self._keys.get(kid)

        if key is None:
            raise AuthenticationError(f"Signing key {kid} not found")
        return key

    def _refresh_allowed(self) -> bool:
        if self._last_fetch_at is None:
            return True
        return self._timer() - self._last_fetch_at >= self.min_refresh_interval

    def _refresh_jwks(self) -> None:
        """Replace the cached keys with the provider's current set.

        The attempt counts against the refresh interval even when it fails.
        """
        self._last_fetch_at = self._timer()
        try:
            response = self._http.get(self.jwks_url)
            response.raise_for_status()
            jwks = response.json()
        except httpx.HTTPError as e:
            logger.error("Failed to fetch JWKS", extra={"url": self.jwks_url, "error": str(e)})
            raise IdentityProviderError(f"Failed to fetch JWKS: {e}") from e
        except ValueError as e:
            raise IdentityProviderError(f"Failed to parse JWKS: {e}") from e

        if not isinstance(jwks, dict) or not isinstance(jwks.get("keys"), list):
            raise IdentityProviderError("JWKS document has no 'keys' list")

        self._keys.clear()
        for key in jwks["keys"]:
            kid = key.get("kid") if isinstance(key, dict) else None
            if kid:
                self._keys[kid] = key

        logger.info("Fetched JWKS", extra={"url": self.jwks_url, "keyCount": len(self._keys)})
