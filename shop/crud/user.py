import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shop.core.exceptions import EmailAlreadyExists
from shop.models.user import User

logger = logging.getLogger(__name__)


class UserCRUD:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def create_user(self, user_data: dict) -> User:
        new_user = User(**user_data)
        self.session.add(new_user)

        try:
            await self.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            await self.session.rollback()
            raise EmailAlreadyExists()

        return new_user
