"""
Practitioner lookup and practitioner number allocation
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from uuid import UUID
import structlog

from models.user import User
from core.config import settings
from core.exceptions import NotFoundError

logger = structlog.get_logger()

class UserService:
    """Service for practitioner accounts"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: UUID) -> User:
        """
        Get a user by ID

        Raises:
            NotFoundError: If the user does not exist
        """
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("Benutzer nicht gefunden", error_code="USER_NOT_FOUND", details={"user_id": str(user_id)})
        return user

    async def next_practitioner_number(self) -> int:
        """Next free practitioner number: highest assigned + 1, starting at the configured base"""
        result = await self.db.execute(select(func.max(User.practitioner_number)))
        highest = result.scalar_one_or_none()
        if highest is None:
            return settings.FIRST_PRACTITIONER_NUMBER
        return max(highest + 1, settings.FIRST_PRACTITIONER_NUMBER)
