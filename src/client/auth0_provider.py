"""Auth0 login session for client applications.

Wraps the Auth0 authorization-code flow (with PKCE) for a public client:
build the login URL, finish the login on the redirect back, and hand out
access tokens to request code, refreshing them when they expire.
"""

import base64
import hashlib
import logging
import os
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import urlencode

import httpx
from cachetools import TTLCache
from jose import jwt
from jose.exceptions import JOSEError

logger = logging.getLogger(__name__)

TOKEN_TIMEOUT_SECONDS = 10.0
# Refresh this many seconds before the access token actually expires
EXPIRY_LEEWAY_SECONDS = 60
DEFAULT_SCOPE = "openid profile email offline_access"
# Logins not finished within this window are forgotten
PENDING_LOGIN_TTL_SECONDS = 600
MAX_PENDING_LOGINS = 20


class Auth0ConfigError(Exception):
    """Required Auth0 settings are missing."""


class LoginRequiredError(Exception):
    """No usable session; the user has to log in again."""


@dataclass(frozen=True)
class Auth0ProviderConfig:
    domain: str
    client_id: str
    redirect_uri: str
    audience: Optional[str] = None
    scope: str = DEFAULT_SCOPE

    @classmethod
    def from_env(cls) -> "Auth0ProviderConfig":
        """Read AUTH0_DOMAIN, AUTH0_CLIENT_ID, AUTH0_CALLBACK_URL and AUTH0_AUDIENCE."""
        domain = os.getenv("AUTH0_DOMAIN")
        client_id = os.getenv("AUTH0_CLIENT_ID")
        redirect_uri = os.getenv("AUTH0_CALLBACK_URL")

        if not domain or not client_id or not redirect_uri:
            raise Auth0ConfigError("unable to initialize auth0")

        return cls(
            domain=domain,
            client_id=client_id,
            redirect_uri=redirect_uri,
            audience=os.getenv("AUTH0_AUDIENCE") or None,
        )


@dataclass
class TokenSet:
    access_token: str
    expires_at: float
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at - EXPIRY_LEEWAY_SECONDS


@dataclass(frozen=True)
class _PendingLogin:
    code_verifier: str
    app_state: Optional[dict]


RedirectCallback = Callable[[Optional[dict], Optional[dict]], None]


def log_redirect(app_state: Optional[dict], user: Optional[dict]) -> None:
    """Default post-login callback."""
    logger.info("onRedirectCallback", extra={"appState": app_state, "user": user})


def _code_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class Auth0Provider:
    """Auth0 session holder with a post-login redirect callback."""

    def __init__(
        self,
        config: Auth0ProviderConfig,
        on_redirect_callback: RedirectCallback = log_redirect,
        http_client: Optional[httpx.AsyncClient] = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.on_redirect_callback = on_redirect_callback
        self._http = http_client
        self._pending: TTLCache = TTLCache(maxsize=MAX_PENDING_LOGINS, ttl=PENDING_LOGIN_TTL_SECONDS, timer=timer)
        self._tokens: Optional[TokenSet] = None
        self.user: Optional[dict] = None

    @property
    def token_url(self) -> str:
        return f"https://{self.config.domain}/oauth/token"

    @property
    def is_authenticated(self) -> bool:
        return self._tokens is not None

    def login_url(self, app_state: Optional[dict] = None) -> str:
        """Build the /authorize URL that starts a login.

        ``app_state`` is handed back to the redirect callback once the
        login completes.
        """
        state = secrets.token_urlsafe(16)
        code_verifier = secrets.token_urlsafe(64)
        self._pending[state] = _PendingLogin(code_verifier=code_verifier, app_state=app_state)

        params = {
            "response_type": "code",
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "scope": self.config.scope,
            "state": state,
            "code_challenge": _code_challenge(code_verifier),
            "code_challenge_method": "S256",
        }
        if self.config.audience:
            params["audience"] = self.config.audience
        return f"https://{self.config.domain}/authorize?{urlencode(params)}"

    async def handle_redirect_callback(self, code: str, state: str) -> Optional[dict]:
        """Finish a login: exchange the code, then run the redirect callback.

        Returns:
            The ID token claims (the logged-in user), or None without an ID token

        Raises:
            LoginRequiredError: ``state`` does not belong to a recent login started here
        """
        pending = self._pending.pop(state, None)
        if pending is None:
            raise LoginRequiredError("Unknown login state")

        data = await self._request_tokens({
            "grant_type": "authorization_code",
            "client_id": self.config.client_id,
            "code": code,
            "code_verifier": pending.code_verifier,
            "redirect_uri": self.config.redirect_uri,
        })
        self._store_tokens(data)
        self.user = _id_token_claims(self._tokens.id_token)

        self.on_redirect_callback(pending.app_state, self.user)
        return self.user

    async def get_access_token_silently(self) -> str:
        """Return a valid access token, refreshing it if it has expired.

        Raises:
            LoginRequiredError: no session, or an expired one without a refresh token
        """
        if self._tokens is None:
            raise LoginRequiredError("Login required")

        if not self._tokens.is_expired(time.time()):
            return self._tokens.access_token

        if not self._tokens.refresh_token:
            self.logout()
            raise LoginRequiredError("Session expired")

        logger.debug("Refreshing access token")
        data = await self._request_tokens({
            "grant_type": "refresh_token",
            "client_id": self.config.client_id,
            "refresh_token": self._tokens.refresh_token,
        })
        self._store_tokens(data)
        return self._tokens.access_token

    def logout(self) -> None:
        self._tokens = None
        self.user = None

    async def _request_tokens(self, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            if self._http is not None:
                response = await self._http.post(self.token_url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=TOKEN_TIMEOUT_SECONDS) as client:
                    response = await client.post(self.token_url, json=payload)
        except httpx.RequestError as e:
            logger.error("Token request failed", extra={"grantType": payload["grant_type"], "error": str(e)})
            raise

        if response.status_code in (400, 401, 403):
            # invalid_grant and friends: the session cannot be continued
            self.logout()
            raise LoginRequiredError(f"Token request rejected: {response.text[:200]}")
        response.raise_for_status()
        return response.json()

    def _store_tokens(self, data: dict[str, Any]) -> None:
        previous_refresh = self._tokens.refresh_token if self._tokens else None
        self._tokens = TokenSet(
            access_token=data["access_token"],
            expires_at=time.time() + int(data.get("expires_in", 86400)),
            # Refresh responses omit the refresh token unless rotation is on
            refresh_token=data.get("refresh_token") or previous_refresh,
            id_token=data.get("id_token") or (self._tokens.id_token if self._tokens else None),
        )


def _id_token_claims(id_token: Optional[str]) -> Optional[dict]:
    if not id_token:
        return None
    try:
        return jwt.get_unverified_claims(id_token)
    except JOSEError as e:
        logger.warning("Could not decode ID token", extra={"error": str(e)})
        return None
