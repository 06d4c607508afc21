"""Request hooks for the current-user API.

Each hook fetches a fresh access token from the login session, sends one
request to ``/api/my/user`` and records loading/success/error flags on its
``state`` for UI code to read. There is no retry and no deduplication.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional, Protocol, TypedDict

import httpx

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:7000")
API_TIMEOUT_SECONDS = 10.0
MY_USER_PATH = "/api/my/user"


class ApiError(Exception):
    """The API answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class AccessTokenSource(Protocol):
    async def get_access_token_silently(self) -> str:
        ...


class Notifier(Protocol):
    """Toast-style user notifications."""
    def success(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...


class LoggingNotifier:
    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.error(message)


class CreateUserRequest(TypedDict):
    auth0Id: str
    email: str


class UpdateMyUserRequest(TypedDict):
    name: str
    addressLine1: str
    city: str
    country: str


@dataclass
class MutationState:
    is_loading: bool = False
    is_success: bool = False
    is_error: bool = False
    error: Optional[Exception] = None

    def reset(self) -> None:
        self.is_loading = False
        self.is_success = False
        self.is_error = False
        self.error = None


class _MyUserHook:
    method: str
    failure_message: str

    def __init__(
        self,
        auth: AccessTokenSource,
        base_url: str = API_BASE_URL,
        notifier: Optional[Notifier] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.auth = auth
        self.base_url = base_url.rstrip("/")
        self.notifier = notifier or LoggingNotifier()
        self._http = http_client
        self.state = MutationState()

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    async def _run(self, payload: Optional[dict] = None) -> httpx.Response:
        self.state.reset()
        self.state.is_loading = True
        try:
            response = await self._send(payload)
            if not response.is_success:
                raise ApiError(self.failure_message, status_code=response.status_code)
        except Exception as e:
            self.state.is_error = True
            self.state.error = e
            raise
        else:
            self.state.is_success = True
            return response
        finally:
            self.state.is_loading = False

    async def _send(self, payload: Optional[dict]) -> httpx.Response:
        access_token = await self.auth.get_access_token_silently()
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        url = f"{self.base_url}{MY_USER_PATH}"

        if self._http is not None:
            return await self._http.request(self.method, url, headers=headers, json=payload)
        async with httpx.AsyncClient(timeout=API_TIMEOUT_SECONDS) as client:
            return await client.request(self.method, url, headers=headers, json=payload)


class CreateMyUser(_MyUserHook):
    """Create the logged-in user's record (POST). A no-op server-side if it exists."""
    method = "POST"
    failure_message = "Failed to create user"

    async def __call__(self, user: CreateUserRequest) -> None:
        await self._run(dict(user))


class GetMyUser(_MyUserHook):
    """Fetch the logged-in user's record (GET)."""
    method = "GET"
    failure_message = "Failed to get user"

    async def __call__(self) -> dict[str, Any]:
        try:
            response = await self._run()
        except ApiError as e:
            self.notifier.error(str(e))
            raise
        return response.json()


class UpdateMyUser(_MyUserHook):
    """Update the logged-in user's profile (PUT).

    Success and failure are both announced through the notifier. After a
    failure the state is reset so the form can be submitted again.
    """
    method = "PUT"
    failure_message = "Failed to update user"

    async def __call__(self, form_data: UpdateMyUserRequest) -> dict[str, Any]:
        try:
            response = await self._run(dict(form_data))
        except Exception as e:
            self.notifier.error(str(e))
            self.state.reset()
            raise
        self.notifier.success("Profile updated successfully")
        return response.json()
