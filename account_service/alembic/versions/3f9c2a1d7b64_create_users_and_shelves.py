"""Initial Alembic migration: create ``users`` and the shelf tables.

Revision ID: 3f9c2a1d7b64
Revises:
Create Date: 2026-10-17 21:14:03.512880

Shelves reference their owner with ``ON DELETE SET NULL`` so that deleting
a user never removes shelf rows.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "3f9c2a1d7b64"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USERS = "users"
PREDEFINED_SHELF = "predefined_shelf"
CUSTOM_SHELF = "custom_shelf"

PREDEFINED_SHELF_NAMES = sa.Enum(
    "TO_READ", "READING", "READ", "DID_NOT_FINISH", name="predefinedshelfname"
)


def _shelf_columns() -> list:
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("shelf_name", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], [f"{USERS}.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    ]


def upgrade() -> None:
    """Apply the migration: create the users and shelf tables with indexes."""
    op.create_table(
        USERS,
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_id"), USERS, ["id"], unique=False)
    op.create_index(op.f("ix_users_email"), USERS, ["email"], unique=True)

    op.create_table(
        PREDEFINED_SHELF,
        *_shelf_columns(),
        sa.Column("predefined_shelf_name", PREDEFINED_SHELF_NAMES, nullable=False),
    )
    op.create_table(CUSTOM_SHELF, *_shelf_columns())

    for table in (PREDEFINED_SHELF, CUSTOM_SHELF):
        op.create_index(op.f(f"ix_{table}_id"), table, ["id"], unique=False)
        op.create_index(op.f(f"ix_{table}_user_id"), table, ["user_id"], unique=False)


def downgrade() -> None:
    """Revert the migration in the reverse order of creation."""
    for table in (CUSTOM_SHELF, PREDEFINED_SHELF):
        op.drop_index(op.f(f"ix_{table}_user_id"), table_name=table)
        op.drop_index(op.f(f"ix_{table}_id"), table_name=table)
        op.drop_table(table)
    PREDEFINED_SHELF_NAMES.drop(op.get_bind(), checkfirst=True)

    op.drop_index(op.f("ix_users_email"), table_name=USERS)
    op.drop_index(op.f("ix_users_id"), table_name=USERS)
    op.drop_table(USERS)
