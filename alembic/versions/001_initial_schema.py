"""Initial schema — all 9 PairQuiz tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. participants ─────────────────────────────────────────────
    op.create_table(
        "participants",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("gender", sa.String, nullable=False),
        sa.Column("age", sa.Integer, nullable=False),
        sa.Column("whatsapp_number", sa.String, nullable=False),
        sa.Column(
            "token_hash",
            sa.String,
            nullable=False,
            comment="sha256(token + salt); the raw token is never stored",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_participants_token_hash", "participants", ["token_hash"], unique=True
    )

    # ── 2. game_sessions ────────────────────────────────────────────
    op.create_table(
        "game_sessions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("session_code", sa.String, nullable=False),
        sa.Column(
            "concluded",
            sa.Boolean,
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column(
            "match_percentage",
            sa.Integer,
            nullable=True,
            comment="0-100, set when concluded",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_game_sessions_session_code", "game_sessions", ["session_code"], unique=True
    )

    # ── 3. session_participants ─────────────────────────────────────
    op.create_table(
        "session_participants",
        sa.Column(
            "session_id",
            sa.Integer,
            sa.ForeignKey("game_sessions.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "participant_id",
            sa.Integer,
            sa.ForeignKey("participants.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    # ── 4. questions (catalog) ──────────────────────────────────────
    op.create_table(
        "questions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column(
            "category",
            sa.String,
            nullable=False,
            comment="common / individual",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    # ── 5. question_options ─────────────────────────────────────────
    op.create_table(
        "question_options",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "question_id",
            sa.Integer,
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("option_text", sa.Text, nullable=False),
    )

    # ── 6. answers ──────────────────────────────────────────────────
    op.create_table(
        "answers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "participant_id",
            sa.Integer,
            sa.ForeignKey("participants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "session_id",
            sa.Integer,
            sa.ForeignKey("game_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "question_id",
            sa.Integer,
            sa.ForeignKey("questions.id"),
            nullable=False,
        ),
        sa.Column(
            "selected_option_id",
            sa.Integer,
            sa.ForeignKey("question_options.id"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "participant_id",
            "session_id",
            "question_id",
            name="uq_answer_participant_session_question",
        ),
    )

    # ── 7. vouchers ─────────────────────────────────────────────────
    op.create_table(
        "vouchers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "session_id",
            sa.Integer,
            sa.ForeignKey("game_sessions.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
            comment="At most one voucher per session",
        ),
        sa.Column("voucher_code", sa.String, unique=True, nullable=False),
        sa.Column("voucher_type", sa.String, nullable=False),
        sa.Column("discount", sa.String, nullable=False),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "downloaded",
            sa.Boolean,
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    # ── 8. coupon_templates ─────────────────────────────────────────
    op.create_table(
        "coupon_templates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column(
            "discount_type",
            sa.String,
            nullable=False,
            comment="percentage / fixed",
        ),
        sa.Column("discount_value", sa.String, nullable=False),
        sa.Column("currency", sa.String, server_default="AED", nullable=False),
        sa.Column("validity_days", sa.Integer, nullable=False),
        sa.Column(
            "match_percentage_threshold",
            sa.Integer,
            server_default="40",
            nullable=False,
        ),
        sa.Column(
            "is_active",
            sa.Boolean,
            server_default=sa.true(),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    # ── 9. branding_settings ────────────────────────────────────────
    op.create_table(
        "branding_settings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("privacy_policy_url", sa.String, nullable=True),
        sa.Column("terms_and_conditions_url", sa.String, nullable=True),
        sa.Column("logo_url", sa.String, nullable=True),
        sa.Column("primary_color", sa.String, nullable=False),
        sa.Column("secondary_color", sa.String, nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_table("branding_settings")
    op.drop_table("coupon_templates")
    op.drop_table("vouchers")
    op.drop_table("answers")
    op.drop_table("question_options")
    op.drop_table("questions")
    op.drop_table("session_participants")
    op.drop_index("ix_game_sessions_session_code", table_name="game_sessions")
    op.drop_table("game_sessions")
    op.drop_index("ix_participants_token_hash", table_name="participants")
    op.drop_table("participants")
