"""Shelf bookkeeping for users."""

from __future__ import annotations

import logging
from typing import List, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from account_service.models import (
    CustomShelf,
    PredefinedShelf,
    PredefinedShelfName,
    User,
)
from account_service.validation import ValidationResult

logger = logging.getLogger(__name__)

Shelf = Union[PredefinedShelf, CustomShelf]

SHELF_NAME_EMPTY_MESSAGE = "Shelf name must not be empty"
SHELF_NAME_MAX_LENGTH = 255


class ShelfAlreadyExistsError(RuntimeError):
    """The user already owns an equal shelf."""


class ShelfService:
    """Create, list and detach the shelves owned by a user."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def create_predefined_shelves(self, user: User) -> List[PredefinedShelf]:
        """Add one shelf per reading status for ``user``.

        The user must already have an id. Nothing is committed here.
        """
        shelves = [PredefinedShelf(name, user) for name in PredefinedShelfName]
        self.session.add_all(shelves)
        return shelves

    async def find_predefined_shelves(self, user_id: int) -> List[PredefinedShelf]:
        stmt = (
            select(PredefinedShelf)
            .filter(PredefinedShelf.user_id == user_id)
            .order_by(PredefinedShelf.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_custom_shelves(self, user_id: int) -> List[CustomShelf]:
        stmt = (
            select(CustomShelf)
            .filter(CustomShelf.user_id == user_id)
            .order_by(CustomShelf.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_shelves(self, user_id: int) -> List[Shelf]:
        """Return the user's predefined shelves followed by custom ones."""
        predefined = await self.find_predefined_shelves(user_id)
        custom = await self.find_custom_shelves(user_id)
        return [*predefined, *custom]

    async def add_custom_shelf(self, user: User, shelf_name: str) -> ValidationResult[CustomShelf]:
        """Create a custom shelf named ``shelf_name`` for ``user``.

        Raises ShelfAlreadyExistsError if the user already owns a custom
        shelf with that name.
        """
        shelf_name = (shelf_name or "").strip()
        if not shelf_name:
            return ValidationResult.failure(SHELF_NAME_EMPTY_MESSAGE)
        if len(shelf_name) > SHELF_NAME_MAX_LENGTH:
            return ValidationResult.failure(
                f"Shelf name must be at most {SHELF_NAME_MAX_LENGTH} characters"
            )

        shelf = CustomShelf(shelf_name, user)
        if shelf in await self.find_custom_shelves(user.id):
            raise ShelfAlreadyExistsError(f"Shelf '{shelf_name}' already exists")

        self.session.add(shelf)
        await self.session.commit()
        logger.info("Created custom shelf %r for user %s", shelf_name, user.id)
        return ValidationResult.success(shelf)

    async def detach_shelves(self, user_id: int) -> int:
        """Clear the owner of every shelf of ``user_id``; returns the count.

        Nothing is committed here.
        """
        shelves = await self.find_shelves(user_id)
        for shelf in shelves:
            shelf.remove_user()
        await self.session.flush()
        return len(shelves)
