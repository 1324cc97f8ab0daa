# app/services/user_service.py
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def user_exists(self, user_id: str) -> bool:
        row = await self.session.execute(select(User.id).where(User.id == user_id))
        return row.scalar_one_or_none() is not None
