"""Create voice_models, audio_sessions and journal_entries

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

All three tables are owner-scoped: owner_id is the identity provider's user
id (no FK, users live in the provider). Each table has an
(owner_id, created_at) index backing the paginated list queries.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "voice_models",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("owner_id", sa.String(255), nullable=False,
                  comment="Principal id from the identity provider"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("external_voice_ref", sa.String(255), nullable=False,
                  comment="Vendor voice identifier (ElevenLabs voice_id)"),
        sa.Column("audio_ref", sa.String(512), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_voice_ref", name="uq_voice_models_external_voice_ref"),
    )
    op.create_index(
        "idx_voice_models_owner_created",
        "voice_models",
        ["owner_id", "created_at"],
    )

    op.create_table(
        "audio_sessions",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("voice_model_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.String(255), nullable=False,
                  server_default=sa.text("'Untitled Session'")),
        sa.Column("script", sa.Text(), nullable=False),
        sa.Column("session_type", sa.String(50), nullable=False,
                  server_default=sa.text("'custom'")),
        sa.Column("audio_ref", sa.String(512), nullable=True,
                  comment="Generated audio path relative to STORAGE_ROOT"),
        sa.Column("duration_seconds", sa.Integer(), nullable=True,
                  comment="Estimated duration: ceil(len(script) / 20)"),
        sa.Column("status", sa.String(20), nullable=False,
                  server_default=sa.text("'pending'")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["voice_model_id"],
            ["voice_models.id"],
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'processing', 'completed', 'failed')",
            name="ck_audio_sessions_status",
        ),
    )
    op.create_index(
        "idx_audio_sessions_owner_created",
        "audio_sessions",
        ["owner_id", "created_at"],
    )

    op.create_table(
        "journal_entries",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=False,
                  server_default=sa.text("'Untitled Entry'")),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("mood", sa.String(50), nullable=True),
        sa.Column("tags", postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("length(trim(content)) > 0", name="ck_journal_entries_content"),
    )
    op.create_index(
        "idx_journal_entries_owner_created",
        "journal_entries",
        ["owner_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_journal_entries_owner_created", table_name="journal_entries")
    op.drop_table("journal_entries")
    op.drop_index("idx_audio_sessions_owner_created", table_name="audio_sessions")
    op.drop_table("audio_sessions")
    op.drop_index("idx_voice_models_owner_created", table_name="voice_models")
    op.drop_table("voice_models")
