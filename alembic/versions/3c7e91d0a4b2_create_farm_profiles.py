"""create_farm_profiles

Revision ID: 3c7e91d0a4b2
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "3c7e91d0a4b2"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
	op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

	op.create_table(
		"farm_profiles",
		sa.Column(
			"id",
			postgresql.UUID(as_uuid=True),
			server_default=sa.text("uuid_generate_v4()"),
			nullable=False,
		),
		sa.Column("user_id", sa.String(length=128), nullable=False),
		sa.Column(
			"document",
			postgresql.JSONB(astext_type=sa.Text()),
			server_default=sa.text("'{}'::jsonb"),
			nullable=False,
		),
		sa.Column(
			"created_at",
			sa.DateTime(timezone=True),
			server_default=sa.text("now()"),
			nullable=False,
		),
		sa.Column(
			"updated_at",
			sa.DateTime(timezone=True),
			server_default=sa.text("now()"),
			nullable=False,
		),
		sa.PrimaryKeyConstraint("id"),
	)
	op.create_index("ix_farm_profiles_user_id", "farm_profiles", ["user_id"], unique=True)


def downgrade() -> None:
	op.drop_index("ix_farm_profiles_user_id", table_name="farm_profiles")
	op.drop_table("farm_profiles")
