"""MongoDB implementation of UserRepository."""

import uuid
from datetime import datetime, timezone
from logging import getLogger
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from adapter.mongodb.connection import USERS_COLLECTION_NAME
from domain.model.errors import DuplicateError
from domain.model.user import ProfileUpdate, User

logger = getLogger(__name__)


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            return create_index_safe(self.collection, [('auth0_id', 1)], 'idx_users_auth0_id', unique=True)
        except PyMongoError as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        return User(
            id=doc['_id'],
            auth0_id=doc['auth0_id'],
            email=doc['email'],
            name=doc['name'],
            created_at=doc['created_at'],
            updated_at=doc['updated_at'],
            address_line1=doc.get('address_line1'),
            city=doc.get('city'),
            country=doc.get('country'),
        )

    def create(self, auth0_id: str, email: str, name: str) -> User | None:
        """Create a new user and return the User object.

        Raises:
            DuplicateError: the unique subject index already holds this auth0_id
        """
        user_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        user_doc = {
            '_id': user_id,
            'auth0_id': auth0_id,
            'email': email,
            'name': name,
            'created_at': now,
            'updated_at': now,
        }
        try:
            self.collection.insert_one(user_doc)
        except DuplicateKeyError as e:
            logger.warning("User already exists for subject", extra={"auth0Id": auth0_id})
            raise DuplicateError(f"User already exists for {auth0_id}") from e
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"auth0Id": auth0_id, "error": str(e)})
            return None

        logger.info("User created", extra={"userId": user_id, "auth0Id": auth0_id})
        return self._to_domain(user_doc)

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        try:
            doc = self.collection.find_one({'_id': user_id})
        except PyMongoError as e:
            logger.error("Failed to get user by ID", extra={"userId": user_id, "error": str(e)})
            return None
        return self._to_domain(doc) if doc else None

    def get_by_auth0_id(self, auth0_id: str) -> User | None:
        """Find a user by identity-provider subject id. Return User or None if not found."""
        try:
            doc = self.collection.find_one({'auth0_id': auth0_id})
        except PyMongoError as e:
            logger.error("Failed to get user by subject", extra={"auth0Id": auth0_id, "error": str(e)})
            return None
        return self._to_domain(doc) if doc else None

    def update_profile(self, user_id: str, update: ProfileUpdate) -> User | None:
        """Overwrite name and address fields. Return the updated User or None."""
        try:
            doc = self.collection.find_one_and_update(
                {'_id': user_id},
                {'$set': {
                    'name': update.name,
                    'address_line1': update.address_line1,
                    'city': update.city,
                    'country': update.country,
                    'updated_at': datetime.now(timezone.utc),
                }},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("Failed to update user profile", extra={"userId": user_id, "error": str(e)})
            return None

        if not doc:
            return None
        logger.info("User profile updated", extra={"userId": user_id})
        return self._to_domain(doc)
