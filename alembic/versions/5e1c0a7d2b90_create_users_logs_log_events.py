"""Create users, logs and log_events tables

Revision ID: 5e1c0a7d2b90
Revises:
Create Date: 2026-03-01 10:12:41.118204

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5e1c0a7d2b90'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

GUILDS = ("SIK", "KIK")
SPORTS = ("Steps", "Biking", "Running/Walking")


def _enum(name: str, values: tuple[str, ...]) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=32)


def upgrade() -> None:
    """Create the three battle tables."""

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger, primary_key=True),
        sa.Column("user_name", sa.String(200), nullable=False),
        sa.Column("guild", _enum("guild", GUILDS), nullable=True),
    )
    op.create_index("ix_users_guild", "users", ["guild"])

    # --- logs ---
    op.create_table(
        "logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.BigInteger,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("guild", _enum("guild", GUILDS), nullable=False),
        sa.Column("sport", _enum("sport", SPORTS), nullable=False),
        sa.Column("distance", sa.Float, nullable=False),
    )
    op.create_index("ix_logs_user_id", "logs", ["user_id"])
    op.create_index("ix_logs_created_at", "logs", ["created_at"])
    op.create_index("ix_logs_guild_sport", "logs", ["guild", "sport"])

    # --- log_events ---
    op.create_table(
        "log_events",
        sa.Column(
            "user_id",
            sa.BigInteger,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("sport", _enum("sport", SPORTS), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("log_events")
    op.drop_index("ix_logs_guild_sport", table_name="logs")
    op.drop_index("ix_logs_created_at", table_name="logs")
    op.drop_index("ix_logs_user_id", table_name="logs")
    op.drop_table("logs")
    op.drop_index("ix_users_guild", table_name="users")
    op.drop_table("users")
