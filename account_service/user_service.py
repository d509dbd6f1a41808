"""Account business rules: registration, credential changes and removal.

Validation problems are returned as :class:`ValidationResult` values.
Uniqueness problems raise :class:`UserAlreadyRegisteredError`.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from account_service.models import User
from account_service.security import (
    AuthenticatedIdentity,
    get_password_hash,
    verify_password,
)
from account_service.shelf_service import ShelfService
from account_service.validation import (
    PasswordStrength,
    ValidationResult,
    normalize_email,
    validate_email_address,
    validate_password,
    validate_registration,
)

logger = logging.getLogger(__name__)

EMAIL_TAKEN_MESSAGE = "An account with this email address already exists"


class UserAlreadyRegisteredError(RuntimeError):
    """The email address is already in use by another account."""


class UserService:
    """Operations on :class:`User` records within one database session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.shelves = ShelfService(session)

    async def find_all(self) -> List[User]:
        result = await self.session.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def find_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).filter(User.email == normalize_email(email))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        return await self.find_by_email(email) is not None

    async def register(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> ValidationResult[User]:
        """Create a user together with their predefined shelves.

        Raises UserAlreadyRegisteredError if the email is already taken,
        whatever else is wrong with the request.
        """
        if email and await self.email_exists(email):
            raise UserAlreadyRegisteredError(EMAIL_TAKEN_MESSAGE)

        result = validate_registration(email, password)
        if not result.ok:
            logger.info("Registration rejected: %s", result.violations)
            return ValidationResult.failure(*result.violations)

        user = User(
            email=result.value,
            hashed_password=get_password_hash(password),
            display_name=display_name or None,
        )
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise UserAlreadyRegisteredError(EMAIL_TAKEN_MESSAGE) from exc

        self.shelves.create_predefined_shelves(user)
        await self.session.commit()
        logger.info("Registered user %s", user.id)
        return ValidationResult.success(user)

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user if ``password`` matches, otherwise ``None``."""
        user = await self.find_by_email(email or "")
        if user is None or not verify_password(password, user.hashed_password):
            return None
        return user

    async def get_current_user(
        self, identity: Optional[AuthenticatedIdentity]
    ) -> Optional[User]:
        """Resolve the caller's user record, ``None`` if there is none."""
        if identity is None:
            return None
        return await self.find_user_by_id(identity.user_id)

    async def change_user_email(self, user: User, new_email: str) -> ValidationResult[User]:
        """Give ``user`` a new login email.

        Raises UserAlreadyRegisteredError if another account uses it.
        """
        result = validate_email_address(new_email)
        if not result.ok:
            return ValidationResult.failure(*result.violations)

        if result.value == user.email:
            return ValidationResult.success(user)

        existing = await self.find_by_email(result.value)
        if existing is not None and existing.id != user.id:
            raise UserAlreadyRegisteredError(EMAIL_TAKEN_MESSAGE)

        user.email = result.value
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise UserAlreadyRegisteredError(EMAIL_TAKEN_MESSAGE) from exc
        logger.info("Changed email for user %s", user.id)
        return ValidationResult.success(user)

    async def change_user_password(
        self, user: User, new_password: str
    ) -> ValidationResult[User]:
        result = validate_password(new_password, PasswordStrength.STRONG)
        if not result.ok:
            return ValidationResult.failure(*result.violations)

        user.hashed_password = get_password_hash(new_password)
        await self.session.commit()
        logger.info("Changed password for user %s", user.id)
        return ValidationResult.success(user)

    async def delete_user_by_id(self, user_id: int) -> None:
        """Detach the user's shelves, then delete the user."""
        user = await self.find_user_by_id(user_id)
        if user is None:
            return
        detached = await self.shelves.detach_shelves(user_id)
        await self.session.delete(user)
        await self.session.commit()
        logger.info("Deleted user %s and detached %d shelves", user_id, detached)
