import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from shop.core.config import settings
from shop.core.exceptions import EmailAlreadyExists, InvalidCredentials, UserNotFound
from shop.core.security import (
    DUMMY_PASSWORD_HASH,
    create_access_token,
    hash_password,
    verify_password,
)
from shop.crud.user import UserCRUD
from shop.models.user import User

# Initialize logger for tracking auth events
logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, session: AsyncSession):
        self.user_crud = UserCRUD(session=session)

    async def register(self, user_in: dict) -> User:
        email = user_in["email"].lower()

        # 1. Logic: Check existence
        if await self.user_crud.get_by_email(email):
            logger.warning(f"Registration failed: User {email} already exists.")
            raise EmailAlreadyExists()

        # 2. Logic: Prepare data (hashing)
        user_data = {
            "name": user_in["name"],
            "email": email,
            "password_hash": hash_password(user_in["password"]),
        }

        # 3. CRUD: Save to database (commits, maps a lost race to EmailAlreadyExists)
        new_user = await self.user_crud.create_user(user_data)

        logger.info(f"User registered successfully: {new_user.id}")
        return new_user

    async def login(self, email: str, password: str) -> dict:
        """
        Validates user credentials and issues an access token.
        """
        email = email.lower()

        # 1. Fetch user via CRUD
        user = await self.user_crud.get_by_email(email)

        # 2. Verify identity. An unknown email still pays for one bcrypt check
        # and ends in the same exception as a wrong password.
        password_hash = user.password_hash if user else DUMMY_PASSWORD_HASH
        password_ok = verify_password(password, password_hash)

        if not user or not password_ok:
            logger.warning(f"Login failed: Invalid credentials for {email}")
            raise InvalidCredentials()

        # 3. Generate token
        logger.info(f"Login successful: User {user.id}")

        return {
            "access_token": create_access_token(user),
            "token_type": "bearer",
            "expires_in": settings.access_token_expire_hours * 3600,
        }

    async def get_profile(self, user_id: UUID) -> User:
        user = await self.user_crud.get_by_id(user_id)

        if not user:
            raise UserNotFound()

        return user
