"""create ai_analyses

Revision ID: 003
Revises: 002
Create Date: 2026-10-17

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "ai_analyses",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("interview_id", sa.String(64), nullable=True, index=True),
        sa.Column("question_id", sa.Integer(), nullable=True),
        sa.Column("problem_id", sa.String(64), nullable=True, index=True),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("language", sa.Text(), nullable=False),
        sa.Column("cache_key", sa.String(64), nullable=False),
        sa.Column("algorithm_analysis", sa.JSON(), nullable=True),
        sa.Column("complexity_analysis", sa.JSON(), nullable=True),
        sa.Column("optimization_suggestions", sa.JSON(), nullable=True),
        sa.Column("test_cases", sa.JSON(), nullable=True),
        sa.Column("analysis_text", sa.Text(), nullable=True),
        sa.Column("complexity_text", sa.Text(), nullable=True),
        sa.Column("optimization_text", sa.Text(), nullable=True),
        sa.Column("test_cases_text", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    # One record per fingerprint; concurrent first writes collide here instead of duplicating
    op.create_index("ix_ai_analyses_owner_key", "ai_analyses", ["owner_id", "cache_key"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_ai_analyses_owner_key", table_name="ai_analyses")
    op.drop_table("ai_analyses")
