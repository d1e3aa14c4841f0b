"""Create videos table for generated video metadata.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "videos",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("storage_key", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="ACTIVE"),
        sa.Column("format", sa.String(), nullable=False, server_default="video/mp4"),
        sa.Column("provider_name", sa.String(), nullable=True),
        sa.Column("mime_type", sa.String(), nullable=True),
        sa.Column("create_time", sa.String(), nullable=True),
        sa.Column("expiration_time", sa.String(), nullable=True),
        sa.Column("update_time", sa.String(), nullable=True),
        sa.Column("uri", sa.Text(), nullable=True),
        sa.Column("download_uri", sa.Text(), nullable=True),
        sa.Column("source", sa.String(), nullable=True),
        sa.Column("duration_seconds", sa.String(), nullable=True),
        sa.Column("requested_duration_seconds", sa.Float(), nullable=True),
        sa.Column("quality", sa.String(), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=True),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint("size_bytes IS NULL OR size_bytes >= 0", name="ck_videos_size_bytes"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_videos_storage_key", "videos", ["storage_key"], unique=True)
    op.create_index("ix_videos_status", "videos", ["status"])
    op.create_index("ix_videos_provider_name", "videos", ["provider_name"])
    op.create_index("ix_videos_user_id", "videos", ["user_id"])
    op.create_index("ix_videos_status_created_at", "videos", ["status", "created_at"])
    op.create_index("ix_videos_user_id_created_at", "videos", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_videos_user_id_created_at", table_name="videos")
    op.drop_index("ix_videos_status_created_at", table_name="videos")
    op.drop_index("ix_videos_user_id", table_name="videos")
    op.drop_index("ix_videos_provider_name", table_name="videos")
    op.drop_index("ix_videos_status", table_name="videos")
    op.drop_index("ix_videos_storage_key", table_name="videos")
    op.drop_table("videos")
