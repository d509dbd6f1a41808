"""SQLAlchemy models for the account service.

Defines the ``User`` account record and the shelf kinds a user owns. Every
shelf kind shares its owner and name through :class:`ShelfMixin`, which also
carries the identity rules (equality, hashing and ownership severance).
"""

from __future__ import annotations

import enum
from typing import Any, ClassVar, Optional, Tuple

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import declared_attr

from account_service.database import Base


class User(Base):
    """ORM model representing an application user.

    Attributes
    ----------
    id:
        Integer primary key.
    email:
        Unique address used as the login name. Stored lower-cased.
    hashed_password:
        Argon2 password hash; never serialised to clients.
    display_name:
        Optional name shown in emails and the UI.
    created_at:
        Creation timestamp set by the database.
    """

    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)
    email: str = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password: str = Column(String(255), nullable=False)
    display_name: Optional[str] = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self) -> str:
        return f"<User id={self.id!r} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "created_at": (
                self.created_at.isoformat() if self.created_at is not None else None
            ),
        }


class ShelfKind(str, enum.Enum):
    PREDEFINED = "predefined"
    CUSTOM = "custom"


class PredefinedShelfName(str, enum.Enum):
    """Reading statuses every user gets a shelf for."""

    TO_READ = "To read"
    READING = "Reading"
    READ = "Read"
    DID_NOT_FINISH = "Did not finish"


class ShelfMixin:
    """Owner and name shared by every shelf kind.

    Two shelves are equal when they are of the same concrete kind, belong to
    the same user and carry the same name. The owner can be cleared with
    :meth:`remove_user` so that a user can be deleted without deleting the
    rows that still reference them.
    """

    kind: ClassVar[ShelfKind]

    @declared_attr
    def user_id(cls):
        return Column(
            Integer,
            ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        )

    @declared_attr
    def shelf_name(cls):
        return Column(String(255), nullable=False)

    def __init__(self, shelf_name: str, user: Optional[User] = None, **kwargs: Any):
        super().__init__(
            shelf_name=shelf_name,
            user_id=user.id if user is not None else None,
            **kwargs,
        )

    def remove_user(self) -> None:
        """Sever the shelf from its owner. Calling it again is a no-op."""
        self.user_id = None

    def _identity(self) -> Tuple[ShelfKind, Optional[int], str]:
        return (self.kind, self.user_id, self.shelf_name)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if other is None or type(self) is not type(other):
            return False
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} id={self.id!r} user_id={self.user_id!r} "
            f"shelf_name={self.shelf_name!r}>"
        )

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "shelf_name": self.shelf_name}


class PredefinedShelf(ShelfMixin, Base):
    """One of the fixed reading-status shelves."""

    __tablename__ = "predefined_shelf"

    kind = ShelfKind.PREDEFINED

    id: int = Column(Integer, primary_key=True, index=True)
    predefined_shelf_name = Column(Enum(PredefinedShelfName), nullable=False)

    def __init__(
        self, predefined_shelf_name: PredefinedShelfName, user: Optional[User] = None
    ):
        super().__init__(
            predefined_shelf_name.value,
            user,
            predefined_shelf_name=predefined_shelf_name,
        )


class CustomShelf(ShelfMixin, Base):
    """A shelf named by its owner."""

    __tablename__ = "custom_shelf"

    kind = ShelfKind.CUSTOM

    id: int = Column(Integer, primary_key=True, index=True)
