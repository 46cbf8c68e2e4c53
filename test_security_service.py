import pytest
from unittest.mock import AsyncMock, patch, MagicMock
from datetime import datetime, timedelta
from jose import jwt

import laneboard.db.models  # noqa: F401
from laneboard.services.security_service import SecurityService
from laneboard.services.stream_service import StreamTokenService
from laneboard.models.user import User
from sqlalchemy.ext.asyncio import AsyncSession


class TestSecurityService:
    """Юниттесты для SecurityService"""

    def setup_method(self):
        """Настройка для каждого теста"""
        self.mock_db = AsyncMock(spec=AsyncSession)
        self.test_user = User(
            id=1,
            email="test@example.com",
            username="testuser",
            hashed_password="$2b$12$test_hashed_password",
            is_active=True
        )

    def mock_lookup(self, user):
        mock_scalars = MagicMock()
        mock_scalars.first.return_value = user

        mock_result = MagicMock()
        mock_result.scalars.return_value = mock_scalars

        self.mock_db.execute.return_value = mock_result

    def test_password_hash_roundtrip(self):
        """Хеш создается и проверяется"""
        password = "testpassword123"
        hash_result = SecurityService.create_password_hash(password)

        assert hash_result != password
        assert hash_result.startswith("$2b$")
        assert SecurityService.verify_password(password, hash_result) is True
        assert SecurityService.verify_password("wrongpassword", hash_result) is False

    @pytest.mark.asyncio
    async def test_get_user_by_email_found(self):
        self.mock_lookup(self.test_user)

        result = await SecurityService.get_user_by_email(self.mock_db, "test@example.com")

        assert result == self.test_user
        self.mock_db.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_user_by_username_not_found(self):
        self.mock_lookup(None)

        result = await SecurityService.get_user_by_username(self.mock_db, "nobody")

        assert result is None

    @pytest.mark.asyncio
    async def test_authenticate_user_by_email(self):
        """Вход по email ищет пользователя по email"""
        with patch.object(SecurityService, 'get_user_by_email', return_value=self.test_user) as by_email, \
             patch.object(SecurityService, 'get_user_by_username') as by_username, \
             patch.object(SecurityService, 'verify_password', return_value=True):
            result = await SecurityService.authenticate_user(self.mock_db, "test@example.com", "password123")

        assert result == self.test_user
        by_email.assert_called_once()
        by_username.assert_not_called()

    @pytest.mark.asyncio
    async def test_authenticate_user_wrong_password(self):
        with patch.object(SecurityService, 'get_user_by_username', return_value=self.test_user), \
             patch.object(SecurityService, 'verify_password', return_value=False):
            result = await SecurityService.authenticate_user(self.mock_db, "testuser", "wrong")

        assert result is None

    @pytest.mark.asyncio
    async def test_authenticate_user_not_found(self):
        with patch.object(SecurityService, 'get_user_by_username', return_value=None):
            result = await SecurityService.authenticate_user(self.mock_db, "nobody", "password123")

        assert result is None

    @patch('laneboard.services.security_service.settings')
    def test_create_tokens(self, mock_settings):
        """Логин выдает bearer access токен"""
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"
        mock_settings.ACCESS_TOKEN_EXPIRE_MINUTES = 30

        tokens = SecurityService.create_tokens(1)

        assert tokens["token_type"] == "bearer"
        decoded = jwt.decode(tokens["access_token"], "test_secret_key", algorithms=["HS256"])
        assert decoded["sub"] == "1"
        assert decoded["type"] == "access"

    @patch('laneboard.services.security_service.settings')
    def test_verify_token_expired(self, mock_settings):
        mock_settings.SECRET_KEY = "test_secret_key"
        mock_settings.ALGORITHM = "HS256"

        data = {"sub": "1", "type": "access", "exp": datetime.utcnow() - timedelta(minutes=30)}
        token = jwt.encode(data, "test_secret_key", algorithm="HS256")

        assert SecurityService.verify_token(token, "access") is None

    def test_stream_token_is_not_an_access_token(self):
        """Подписанное имя потока нельзя использовать для входа"""
        assert SecurityService.verify_token(StreamTokenService.sign(1)) is None

    @pytest.mark.asyncio
    async def test_get_current_user_active(self):
        token = SecurityService.create_access_token({"sub": "1"})

        with patch.object(SecurityService, 'get_user_by_id', return_value=self.test_user) as by_id:
            result = await SecurityService.get_current_user(self.mock_db, token)

        assert result == self.test_user
        by_id.assert_called_once_with(self.mock_db, 1)

    @pytest.mark.asyncio
    async def test_get_current_user_inactive(self):
        self.test_user.is_active = False
        token = SecurityService.create_access_token({"sub": "1"})

        with patch.object(SecurityService, 'get_user_by_id', return_value=self.test_user):
            result = await SecurityService.get_current_user(self.mock_db, token)

        assert result is None

    @pytest.mark.asyncio
    async def test_get_current_user_malformed_subject(self):
        token = SecurityService.create_access_token({"sub": "not-a-number"})

        with patch.object(SecurityService, 'get_user_by_id') as by_id:
            result = await SecurityService.get_current_user(self.mock_db, token)

        assert result is None
        by_id.assert_not_called()
