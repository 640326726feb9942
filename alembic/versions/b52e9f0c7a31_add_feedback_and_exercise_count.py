"""add enrollment feedback fields and assessment exercise count

Revision ID: b52e9f0c7a31
Revises: 7c1e2a9d4b10
Create Date: 2026-10-19 16:02:47.310925

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b52e9f0c7a31'
down_revision: Union[str, Sequence[str], None] = '7c1e2a9d4b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENROLLMENT_FEEDBACK_COLUMNS = (
    ("course_feedback", sa.Text()),
    ("course_note", sa.Integer()),
    ("course_feedback_at", sa.DateTime(timezone=True)),
    ("student_feedback", sa.Text()),
    ("student_note", sa.Integer()),
    ("student_feedback_by", sa.Integer()),
    ("student_feedback_at", sa.DateTime(timezone=True)),
)


def _existing_columns(table: str) -> set[str]:
    bind = op.get_bind()
    rows = bind.exec_driver_sql(f"PRAGMA table_info({table});").fetchall()
    return {r[1] for r in rows}


def upgrade() -> None:
    """Upgrade schema."""
    existing = _existing_columns("enrollments")
    for name, type_ in ENROLLMENT_FEEDBACK_COLUMNS:
        if name not in existing:
            op.add_column("enrollments", sa.Column(name, type_, nullable=True))

    if "exercise_count" not in _existing_columns("assessments"):
        op.add_column(
            "assessments",
            sa.Column("exercise_count", sa.Integer(), nullable=False, server_default="0"),
        )


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table("assessments") as batch:
        batch.drop_column("exercise_count")
    with op.batch_alter_table("enrollments") as batch:
        for name, _ in reversed(ENROLLMENT_FEEDBACK_COLUMNS):
            batch.drop_column(name)
