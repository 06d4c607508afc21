"""Unit tests for the jwt_check / jwt_parse authentication dependencies."""

import unittest
from types import SimpleNamespace

from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from adapter.fake.user_repository import FakeUserRepository
from api.security import AuthContext, jwt_check, jwt_parse, token_subject
from domain.model.errors import AuthenticationError


class _Verifier:
    def __init__(self, error=None):
        self.error = error

    def verify(self, token):
        if self.error:
            raise self.error
        return {}


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestTokenSubject(unittest.TestCase):

    def test_reads_sub_claim(self):
        token = jwt.encode({"sub": "auth0|abc"}, "secret", algorithm="HS256")
        self.assertEqual(token_subject(token), "auth0|abc")

    def test_missing_sub_raises_401(self):
        token = jwt.encode({"email": "ada@example.com"}, "secret", algorithm="HS256")
        with self.assertRaises(HTTPException) as ctx:
            token_subject(token)
        self.assertEqual(ctx.exception.status_code, 401)

    def test_malformed_token_raises_401(self):
        with self.assertRaises(HTTPException) as ctx:
            token_subject("garbage")
        self.assertEqual(ctx.exception.status_code, 401)


class TestJwtCheck(unittest.TestCase):

    def test_no_credentials_raises_401(self):
        with self.assertRaises(HTTPException) as ctx:
            jwt_check(credentials=None, verifier=_Verifier())
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.detail, "Not authenticated")

    def test_failed_verification_raises_401(self):
        with self.assertRaises(HTTPException) as ctx:
            jwt_check(credentials=_credentials("tok"), verifier=_Verifier(AuthenticationError("bad")))
        self.assertEqual(ctx.exception.status_code, 401)

    def test_returns_raw_token(self):
        self.assertEqual(jwt_check(credentials=_credentials("tok"), verifier=_Verifier()), "tok")


class TestJwtParse(unittest.TestCase):

    def setUp(self):
        self.repo = FakeUserRepository()
        self.user = self.repo.create(auth0_id="auth0|abc", email="ada@example.com", name="Ada")
        self.request = SimpleNamespace(state=SimpleNamespace())

    def test_attaches_identity_to_request_state(self):
        token = jwt.encode({"sub": "auth0|abc"}, "secret", algorithm="HS256")

        context = jwt_parse(request=self.request, token=token, user_repo=self.repo)

        self.assertEqual(context, AuthContext(auth0_id="auth0|abc", user_id=self.user.id))
        self.assertEqual(self.request.state.auth0_id, "auth0|abc")
        self.assertEqual(self.request.state.user_id, self.user.id)

    def test_unknown_subject_raises_401(self):
        token = jwt.encode({"sub": "auth0|nobody"}, "secret", algorithm="HS256")

        with self.assertRaises(HTTPException) as ctx:
            jwt_parse(request=self.request, token=token, user_repo=self.repo)

        self.assertEqual(ctx.exception.status_code, 401)
        self.assertFalse(hasattr(self.request.state, "user_id"))


if __name__ == '__main__':
    unittest.main()
