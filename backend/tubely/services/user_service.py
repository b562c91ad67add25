"""
Local user accounts: registration and password login.
"""

import logging

from datetime import UTC, datetime

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from tubely.config import Settings
from tubely.core.auth import create_access_token
from tubely.core.exceptions import AuthenticationError, ConflictError, NotFoundError, PersistenceError
from tubely.models.user import TokenResponse, UserCreate, UserRecord, UserResponse
from tubely.utils.security import hash_password, verify_password


logger = logging.getLogger(__name__)


class UserService:
    """
    Account operations over the ``users`` collection.

    Emails are stored lowercased; the collection carries a unique index on
    ``email`` so concurrent registrations cannot both succeed.
    """

    def __init__(self, collection: AsyncIOMotorCollection, settings: Settings) -> None:
        self.collection = collection
        self.settings = settings

    async def register(self, params: UserCreate) -> UserRecord:
        """
        Create an account.

        Raises:
            ConflictError: If the email is already registered.
            PersistenceError: If the write fails.
        """
        record = UserRecord(email=params.email, hashed_password=hash_password(params.password))
        try:
            await self.collection.insert_one(record.to_document())
        except DuplicateKeyError as e:
            raise ConflictError("Email is already registered") from e
        except PyMongoError as e:
            raise PersistenceError("Failed to create user") from e

        logger.info("Registered user", extra={"user_id": record.id})
        return record

    async def login(self, email: str, password: str) -> TokenResponse:
        """
        Verify credentials and issue an access token.

        Raises:
            AuthenticationError: If the email is unknown or the password is wrong.
        """
        try:
            document = await self.collection.find_one({"email": email.lower()})
        except PyMongoError as e:
            raise PersistenceError("Failed to load user") from e

        if document is None:
            raise AuthenticationError("Incorrect email or password")
        record = UserRecord.model_validate(document)
        if not verify_password(password, record.hashed_password):
            logger.warning("Failed login attempt", extra={"user_id": record.id})
            raise AuthenticationError("Incorrect email or password")

        record.last_login = datetime.now(UTC)
        try:
            await self.collection.update_one(
                {"_id": record.id}, {"$set": {"last_login": record.last_login}}
            )
        except PyMongoError as e:
            raise PersistenceError("Failed to record login") from e

        token = create_access_token(record.id, record.email, self.settings)
        return TokenResponse(
            access_token=token,
            expires_in=self.settings.jwt_expiration_hours * 3600,
            user=UserResponse.from_record(record),
        )

    async def get(self, user_id: str) -> UserRecord:
        try:
            document = await self.collection.find_one({"_id": user_id})
        except PyMongoError as e:
            raise PersistenceError("Failed to load user") from e

        if document is None:
            raise NotFoundError("User not found")
        return UserRecord.model_validate(document)


__all__ = ["UserService"]
