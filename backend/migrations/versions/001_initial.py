"""initial schema, quizlab v1

Revision ID: 001_initial
Create Date: 19/10/2026
"""
from alembic import op
import sqlalchemy as sa

revision = '001_initial'
down_revision = None


def upgrade() -> None:
    # ── 1. TESTS ──
    op.create_table("tests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String, nullable=False, server_default=""),
        sa.Column("slug", sa.String, nullable=False),
        sa.Column("category_id", sa.Integer, nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("emoji", sa.String, nullable=True),
        sa.Column("start_message", sa.Text, nullable=True),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_tests_slug", "tests", ["slug"], unique=True)
    op.create_index("ix_tests_category_id", "tests", ["category_id"])

    # ── 2. QUESTIONS + OPTIONS ──
    op.create_table("questions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("test_id", sa.String(36), sa.ForeignKey("tests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("order_index", sa.Integer, nullable=False),
        sa.Column("text", sa.Text, nullable=False, server_default=""),
    )
    op.create_index("ix_questions_test_id", "questions", ["test_id"])

    op.create_table("question_options",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("question_id", sa.String(36), sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("order_index", sa.Integer, nullable=False),
        sa.Column("text", sa.Text, nullable=False, server_default=""),
        sa.Column("score", sa.Integer, nullable=False, server_default="0"),
        sa.Column("tag", sa.String, nullable=True),
    )
    op.create_index("ix_question_options_question_id", "question_options", ["question_id"])

    # ── 3. RÉSULTATS ──
    op.create_table("test_results",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("test_id", sa.String(36), sa.ForeignKey("tests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("order_index", sa.Integer, nullable=False),
        sa.Column("title", sa.String, nullable=False, server_default=""),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("keywords", sa.JSON, nullable=False),
        sa.Column("recommendations", sa.JSON, nullable=False),
        sa.Column("condition_type", sa.String, nullable=False),
        sa.Column("condition_value", sa.JSON, nullable=False),
    )
    op.create_index("ix_test_results_test_id", "test_results", ["test_id"])

    # ── 4. TENTATIVES ──
    op.create_table("user_responses",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("test_id", sa.String(36), sa.ForeignKey("tests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("result_id", sa.String(36), sa.ForeignKey("test_results.id", ondelete="SET NULL"), nullable=True),
        sa.Column("answers", sa.JSON, nullable=False),
        sa.Column("total_score", sa.Integer, nullable=False),
        sa.Column("pattern", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_user_responses_id", "user_responses", ["id"])
    op.create_index("ix_user_responses_test_id", "user_responses", ["test_id"])


def downgrade() -> None:
    tables = ["user_responses", "test_results", "question_options", "questions", "tests"]
    for table in tables:
        op.drop_table(table)
