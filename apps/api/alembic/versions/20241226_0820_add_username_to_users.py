"""Add username to users.

Existing rows get ``user_<email local part>``; collisions take ``_2``,
``_3``... in creation order. The column becomes NOT NULL and unique only
after every row has a value.

Revision ID: 20241226_0820
Revises: 20241220_0900
Create Date: 2024-12-26
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20241226_0820"
down_revision: Union[str, Sequence[str], None] = "20241220_0900"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USERNAME_MAX_LENGTH = 100


def _username_from_email(email: str) -> str:
    local_part = email.split("@", 1)[0]
    return f"user_{local_part}"[:USERNAME_MAX_LENGTH]


def _unique_username(base: str, taken: set[str]) -> str:
    if base not in taken:
        return base
    suffix = 2
    while True:
        tail = f"_{suffix}"
        candidate = f"{base[:USERNAME_MAX_LENGTH - len(tail)]}{tail}"
        if candidate not in taken:
            return candidate
        suffix += 1


def upgrade() -> None:
    """Upgrade schema."""
    # 1. Permissive column so existing rows stay valid.
    op.add_column("users", sa.Column("username", sa.String(length=USERNAME_MAX_LENGTH), nullable=True))

    # 2. Backfill legacy rows.
    conn = op.get_bind()
    taken = {
        row[0]
        for row in conn.execute(
            sa.text("SELECT username FROM users WHERE username IS NOT NULL")
        )
    }
    rows = conn.execute(
        sa.text(
            "SELECT id, email FROM users WHERE username IS NULL "
            "ORDER BY created_at, email"
        )
    ).fetchall()
    for user_id, email in rows:
        username = _unique_username(_username_from_email(email), taken)
        taken.add(username)
        conn.execute(
            sa.text("UPDATE users SET username = :username WHERE id = :id"),
            {"username": username, "id": user_id},
        )

    # 3. Tighten.
    with op.batch_alter_table("users") as batch_op:
        batch_op.alter_column(
            "username",
            existing_type=sa.String(length=USERNAME_MAX_LENGTH),
            nullable=False,
        )
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_users_username"), table_name="users")
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_column("username")
