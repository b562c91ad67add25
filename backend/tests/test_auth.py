"""
Authentication Tests

Covers password hashing, local JWT issuance and validation, the
``get_current_user_id`` dependency, and the /auth endpoints with the users
collection mocked.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, Mock

import pytest

from fastapi.testclient import TestClient
from jose import JWTError
from pymongo.errors import DuplicateKeyError

from tubely.config import Settings
from tubely.core.auth import create_local_jwt, validate_local_jwt
from tubely.core.exceptions import AuthenticationError, ConflictError
from tubely.models.user import UserCreate, UserRecord
from tubely.services.user_service import UserService
from tubely.utils.security import (
    generate_jwt_token,
    hash_password,
    validate_jwt_token,
    verify_password,
)

from tests.conftest import OWNER_ID, TEST_SECRET_KEY


# =============================================================================
# Password Hashing
# =============================================================================


class TestPasswordHashing:
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("password123")
        assert hashed != "password123"
        assert hashed.startswith("$2b$12$")
        assert verify_password("password123", hashed)
        assert not verify_password("wrong-password", hashed)

    def test_empty_password_rejected(self) -> None:
        with pytest.raises(ValueError):
            hash_password("")

    def test_malformed_hash_fails_closed(self) -> None:
        assert verify_password("password123", "not-a-bcrypt-hash") is False


# =============================================================================
# JWT Tokens
# =============================================================================


class TestLocalJWT:
    def test_round_trip_claims(self, mock_settings: Settings) -> None:
        token = create_local_jwt(OWNER_ID, "owner@tubely.com", mock_settings)

        claims = validate_local_jwt(token, mock_settings)

        assert claims["sub"] == OWNER_ID
        assert claims["email"] == "owner@tubely.com"
        assert claims["type"] == "local"
        assert claims["exp"] - claims["iat"] == 24 * 3600

    def test_expired_token(self, mock_settings: Settings) -> None:
        token = generate_jwt_token(
            {"sub": OWNER_ID, "type": "local"},
            TEST_SECRET_KEY,
            expires_delta=timedelta(seconds=-10),
        )
        with pytest.raises(JWTError):
            validate_local_jwt(token, mock_settings)

    def test_wrong_secret(self, mock_settings: Settings) -> None:
        token = generate_jwt_token({"sub": OWNER_ID, "type": "local"}, "x" * 40)
        with pytest.raises(JWTError):
            validate_local_jwt(token, mock_settings)

    def test_non_local_token(self, mock_settings: Settings) -> None:
        token = generate_jwt_token({"sub": OWNER_ID, "type": "refresh"}, TEST_SECRET_KEY)
        with pytest.raises(JWTError):
            validate_local_jwt(token, mock_settings)

    def test_token_without_subject(self, mock_settings: Settings) -> None:
        token = generate_jwt_token({"type": "local"}, TEST_SECRET_KEY)
        with pytest.raises(JWTError):
            validate_local_jwt(token, mock_settings)

    def test_empty_token(self) -> None:
        with pytest.raises(JWTError):
            validate_jwt_token("", TEST_SECRET_KEY)


class TestCurrentUserDependency:
    def test_missing_header(self, test_client: TestClient) -> None:
        response = test_client.get("/api/v1/videos")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["detail"]["message"] == "Missing bearer token"

    def test_garbage_token(self, test_client: TestClient) -> None:
        response = test_client.get(
            "/api/v1/videos", headers={"Authorization": "Bearer not.a.jwt"}
        )
        assert response.status_code == 401
        assert response.json()["detail"]["message"] == "Invalid token"

    def test_expired_token(self, test_client: TestClient) -> None:
        token = generate_jwt_token(
            {"sub": OWNER_ID, "type": "local"},
            TEST_SECRET_KEY,
            expires_delta=timedelta(seconds=-10),
        )
        response = test_client.get(
            "/api/v1/videos", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["detail"]["message"] == "Token has expired"


# =============================================================================
# UserService and /auth endpoints
# =============================================================================


def _users_collection(document: dict | None = None) -> Mock:
    collection = Mock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock(return_value=document)
    collection.update_one = AsyncMock()
    return collection


@pytest.fixture
def stored_user() -> UserRecord:
    return UserRecord(email="owner@tubely.com", hashed_password=hash_password("password123"))


class TestUserService:
    @pytest.mark.asyncio
    async def test_register_hashes_password(self, mock_settings: Settings) -> None:
        collection = _users_collection()
        service = UserService(collection, mock_settings)

        record = await service.register(UserCreate(email="New@Tubely.com", password="password123"))

        document = collection.insert_one.await_args.args[0]
        assert document["_id"] == record.id
        assert document["email"] == "new@tubely.com"
        assert document["hashed_password"] != "password123"
        assert verify_password("password123", document["hashed_password"])

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, mock_settings: Settings) -> None:
        collection = _users_collection()
        collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")
        service = UserService(collection, mock_settings)

        with pytest.raises(ConflictError):
            await service.register(UserCreate(email="dup@tubely.com", password="password123"))

    @pytest.mark.asyncio
    async def test_login_issues_token(
        self, mock_settings: Settings, stored_user: UserRecord
    ) -> None:
        collection = _users_collection(stored_user.to_document())
        service = UserService(collection, mock_settings)

        result = await service.login("OWNER@tubely.com", "password123")

        collection.find_one.assert_awaited_once_with({"email": "owner@tubely.com"})
        assert result.token_type == "bearer"
        assert result.expires_in == 24 * 3600
        assert result.user.id == stored_user.id
        assert result.user.last_login is not None
        assert validate_local_jwt(result.access_token, mock_settings)["sub"] == stored_user.id
        collection.update_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_login_wrong_password(
        self, mock_settings: Settings, stored_user: UserRecord
    ) -> None:
        collection = _users_collection(stored_user.to_document())
        service = UserService(collection, mock_settings)

        with pytest.raises(AuthenticationError):
            await service.login("owner@tubely.com", "wrong-password")
        collection.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, mock_settings: Settings) -> None:
        service = UserService(_users_collection(None), mock_settings)
        with pytest.raises(AuthenticationError):
            await service.login("nobody@tubely.com", "password123")


class TestAuthEndpoints:
    @pytest.fixture
    def users(self, stored_user: UserRecord) -> Mock:
        return _users_collection(stored_user.to_document())

    @pytest.fixture
    def auth_client(
        self, test_client: TestClient, users: Mock, mock_settings: Settings
    ) -> TestClient:
        from tubely.api.v1.auth import get_user_service
        from tubely.main import app

        app.dependency_overrides[get_user_service] = lambda: UserService(users, mock_settings)
        return test_client

    def test_register(self, auth_client: TestClient) -> None:
        response = auth_client.post(
            "/api/v1/auth/register", json={"email": "new@tubely.com", "password": "password123"}
        )
        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "new@tubely.com"
        assert "hashed_password" not in body

    def test_register_duplicate(self, auth_client: TestClient, users: Mock) -> None:
        users.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")
        response = auth_client.post(
            "/api/v1/auth/register", json={"email": "owner@tubely.com", "password": "password123"}
        )
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "conflict"

    def test_register_short_password(self, auth_client: TestClient) -> None:
        response = auth_client.post(
            "/api/v1/auth/register", json={"email": "new@tubely.com", "password": "short"}
        )
        assert response.status_code == 422

    def test_login_then_me(self, auth_client: TestClient, stored_user: UserRecord) -> None:
        login = auth_client.post(
            "/api/v1/auth/login", json={"email": "owner@tubely.com", "password": "password123"}
        )
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = auth_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert me.status_code == 200
        assert me.json()["id"] == stored_user.id

    def test_login_bad_password(self, auth_client: TestClient) -> None:
        response = auth_client.post(
            "/api/v1/auth/login", json={"email": "owner@tubely.com", "password": "nope-nope"}
        )
        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "unauthorized"
