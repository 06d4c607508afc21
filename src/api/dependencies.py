import os

from fastapi import HTTPException

from adapter.auth0.token_verifier import Auth0TokenVerifier
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.user_repository import MongoUserRepository
from port.token_verifier import TokenVerifier
from port.user_repository import UserRepository

_token_verifier: TokenVerifier | None = None


def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


def get_user_repo() -> UserRepository:
    return MongoUserRepository(_get_db())


def get_token_verifier() -> TokenVerifier:
    """Return the process-wide Auth0 verifier, raising 503 if auth is not configured.

    One instance is kept so the fetched key set is reused across requests.
    """
    global _token_verifier
    if _token_verifier is None:
        audience = os.getenv("AUTH0_AUDIENCE")
        issuer_base_url = os.getenv("AUTH0_ISSUER_BASE_URL")
        if not audience or not issuer_base_url:
            raise HTTPException(status_code=503, detail="Authentication not configured")
        _token_verifier = Auth0TokenVerifier(issuer_base_url=issuer_base_url, audience=audience)
    return _token_verifier


def reset_token_verifier():
    global _token_verifier
    _token_verifier = None
