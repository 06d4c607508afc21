"""Tests for the current-user request hooks against a mocked HTTP transport."""

import json
import unittest

import httpx

from client.auth0_provider import LoginRequiredError
from client.my_user_api import ApiError, CreateMyUser, GetMyUser, MutationState, UpdateMyUser

BASE_URL = "http://api.test"


class StubAuth:
    def __init__(self, token="access-token-1", error=None):
        self.token = token
        self.error = error
        self.calls = 0

    async def get_access_token_silently(self) -> str:
        self.calls += 1
        if self.error:
            raise self.error
        return self.token


class RecordingNotifier:
    def __init__(self):
        self.successes: list[str] = []
        self.errors: list[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class HookTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body = {"_id": "user-1", "auth0Id": "auth0|abc", "email": "ada@example.com", "name": "Ada"}

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(self.status_code, json=self.body)

        self.http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        self.auth = StubAuth()
        self.notifier = RecordingNotifier()

    async def asyncTearDown(self):
        await self.http.aclose()

    def _hook(self, hook_class):
        return hook_class(self.auth, base_url=BASE_URL, notifier=self.notifier, http_client=self.http)


class TestCreateMyUser(HookTestCase):

    async def test_posts_user_with_fresh_token(self):
        create_user = self._hook(CreateMyUser)

        result = await create_user({"auth0Id": "auth0|abc", "email": "ada@example.com"})

        self.assertIsNone(result)
        request = self.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(str(request.url), f"{BASE_URL}/api/my/user")
        self.assertEqual(request.headers["Authorization"], "Bearer access-token-1")
        self.assertEqual(request.headers["Content-Type"], "application/json")
        self.assertEqual(json.loads(request.content), {"auth0Id": "auth0|abc", "email": "ada@example.com"})
        self.assertEqual(self.auth.calls, 1)
        self.assertTrue(create_user.state.is_success)
        self.assertFalse(create_user.state.is_loading)

    async def test_failure_sets_error_flags(self):
        self.status_code = 500
        create_user = self._hook(CreateMyUser)

        with self.assertRaises(ApiError) as ctx:
            await create_user({"auth0Id": "auth0|abc", "email": "ada@example.com"})

        self.assertEqual(str(ctx.exception), "Failed to create user")
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertTrue(create_user.state.is_error)
        self.assertFalse(create_user.state.is_success)
        self.assertFalse(create_user.is_loading)

    async def test_each_call_fetches_a_token(self):
        create_user = self._hook(CreateMyUser)

        await create_user({"auth0Id": "auth0|abc", "email": "ada@example.com"})
        await create_user({"auth0Id": "auth0|abc", "email": "ada@example.com"})

        self.assertEqual(self.auth.calls, 2)
        self.assertEqual(len(self.requests), 2)


class TestGetMyUser(HookTestCase):

    async def test_returns_user_json(self):
        get_user = self._hook(GetMyUser)

        user = await get_user()

        self.assertEqual(user["_id"], "user-1")
        self.assertEqual(self.requests[0].method, "GET")

    async def test_failure_notifies(self):
        self.status_code = 401
        get_user = self._hook(GetMyUser)

        with self.assertRaises(ApiError):
            await get_user()

        self.assertEqual(self.notifier.errors, ["Failed to get user"])
        self.assertTrue(get_user.state.is_error)


class TestUpdateMyUser(HookTestCase):

    form = {"name": "Ada Lovelace", "addressLine1": "12 St James Sq", "city": "London", "country": "UK"}

    async def test_puts_form_and_notifies_success(self):
        update_user = self._hook(UpdateMyUser)

        result = await update_user(self.form)

        self.assertEqual(result["_id"], "user-1")
        self.assertEqual(self.requests[0].method, "PUT")
        self.assertEqual(json.loads(self.requests[0].content), self.form)
        self.assertEqual(self.notifier.successes, ["Profile updated successfully"])
        self.assertTrue(update_user.state.is_success)

    async def test_failure_notifies_and_resets(self):
        self.status_code = 404
        update_user = self._hook(UpdateMyUser)

        with self.assertRaises(ApiError):
            await update_user(self.form)

        self.assertEqual(self.notifier.errors, ["Failed to update user"])
        self.assertEqual(update_user.state, MutationState())

    async def test_token_failure_is_reported_without_request(self):
        self.auth.error = LoginRequiredError("Login required")
        update_user = self._hook(UpdateMyUser)

        with self.assertRaises(LoginRequiredError):
            await update_user(self.form)

        self.assertEqual(self.requests, [])
        self.assertEqual(self.notifier.errors, ["Login required"])


if __name__ == '__main__':
    unittest.main()
