"""
Videos table with management ids.

- `videos` with nullable `management_id`, partition `site_id`, manual rank.
- Partial unique index on (coalesce(site_id, ''), management_id) for
  non-empty ids.
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers, used by Alembic.
revision = "20251227_01_videos_management_id"
down_revision = None
branch_labels = None
depends_on = None

_NON_EMPTY_ID = "management_id IS NOT NULL AND management_id <> ''"


def upgrade() -> None:
    op.create_table(
        "videos",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("management_id", sa.String(length=32), nullable=True),
        sa.Column("site_id", sa.String(length=64), nullable=True),
        sa.Column("owner_id", sa.String(length=64), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("platform", sa.String(length=16), nullable=False),
        sa.Column("source_url", sa.String(length=2048), nullable=False),
        sa.Column("visibility", sa.String(length=16), nullable=False),
        sa.Column("language", sa.String(length=16), nullable=False),
        sa.Column("batch_order", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_videos"),
    )
    op.create_index("ix_videos_management_id", "videos", ["management_id"], unique=False)
    op.create_index("ix_videos_site_id", "videos", ["site_id"], unique=False)
    op.create_index("ix_videos_created_at", "videos", ["created_at"], unique=False)
    op.create_index(
        "uq_videos_site_management_id",
        "videos",
        [sa.text("coalesce(site_id, '')"), "management_id"],
        unique=True,
        sqlite_where=sa.text(_NON_EMPTY_ID),
        postgresql_where=sa.text(_NON_EMPTY_ID),
    )


def downgrade() -> None:
    op.drop_index("uq_videos_site_management_id", table_name="videos")
    op.drop_index("ix_videos_created_at", table_name="videos")
    op.drop_index("ix_videos_site_id", table_name="videos")
    op.drop_index("ix_videos_management_id", table_name="videos")
    op.drop_table("videos")
