"""initial_schema

Revision ID: 5d1e0c7a9b42
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5d1e0c7a9b42'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = postgresql.UUID(as_uuid=True)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="supervisor"),
        _created_at(),
    )
    op.create_table(
        "profiles",
        sa.Column("id", UUID, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="supervisor"),
        _created_at(),
    )
    op.create_table(
        "jobs",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("job_name", sa.String(200), nullable=False),
        sa.Column("client_name", sa.String(200), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("active", "completed", "cancelled", name="job_status_enum"),
            nullable=False,
            server_default="active",
        ),
        _created_at(),
    )
    op.create_table(
        "ranks",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        _created_at(),
    )
    op.create_table(
        "divers",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("rank", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("certification_no", sa.String(100), nullable=True),
        _created_at(),
    )
    op.create_table(
        "dives",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("job_id", UUID, sa.ForeignKey("jobs.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("diver_id", UUID, sa.ForeignKey("divers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("supervisor_id", UUID, sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("bottom_time", sa.String(50), nullable=True),
        sa.Column(
            "status",
            sa.Enum("in_progress", "completed", name="dive_status_enum"),
            nullable=False,
            server_default="in_progress",
        ),
        sa.Column("dive_no", sa.Integer(), nullable=True),
        sa.Column("max_depth", sa.Float(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_dives_job_created", "dives", ["job_id", "created_at"])
    op.create_index("ix_dives_date", "dives", ["date"])
    op.create_table(
        "dive_events",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("dive_id", UUID, sa.ForeignKey("dives.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("depth", sa.Float(), nullable=False, server_default="0"),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _created_at(),
        sa.CheckConstraint("depth >= 0", name="ck_dive_events_depth_non_negative"),
    )
    op.create_index("ix_dive_events_dive_time", "dive_events", ["dive_id", "event_time"])
    op.create_table(
        "audit_logs",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("user_id", UUID, nullable=True),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=True),
        sa.Column("resource_id", UUID, nullable=True),
        sa.Column("detail", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        _created_at(),
    )
    op.create_index("ix_audit_logs_resource", "audit_logs", ["resource_type", "resource_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("dive_events")
    op.drop_table("dives")
    op.drop_table("divers")
    op.drop_table("ranks")
    op.drop_table("jobs")
    op.drop_table("profiles")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS dive_status_enum")
    op.execute("DROP TYPE IF EXISTS job_status_enum")
