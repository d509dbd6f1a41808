"""FastAPI dependency providers for services."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from account_service.database import get_db
from account_service.shelf_service import ShelfService
from account_service.user_service import UserService


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def get_shelf_service(db: AsyncSession = Depends(get_db)) -> ShelfService:
    return ShelfService(db)
