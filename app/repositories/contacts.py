# app/repositories/contacts.py
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.user import Talent, User


class ContactDirectory:
    """Resolves email addresses for the two parties of a reservation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def client_email(self, client_id: Optional[str]) -> Optional[str]:
        if not client_id:
            return None
        result = await self.db.execute(select(User.email).where(User.id == client_id))
        return result.scalars().first()

    async def talent_email(self, talent_id: str) -> Optional[str]:
        # talents are a sub-profile of a user; the email lives on the user
        result = await self.db.execute(
            select(User.email).join(Talent, Talent.user_id == User.id).where(Talent.id == talent_id)
        )
        return result.scalars().first()
