"""manager and worker stats

Revision ID: 8b52e0d6a913
Revises: 3f1c9a2b7d40
Create Date: 2026-10-19 16:40:05.502117

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8b52e0d6a913"
down_revision: Union[str, Sequence[str], None] = "3f1c9a2b7d40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "manager_config_eje",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("config", sa.JSON(), nullable=False),
        sa.Column("current_state", sa.JSON(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True
        ),
        sa.Column(
            "updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True
        ),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "manager_config_eje_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "manager_id",
            sa.Integer(),
            sa.ForeignKey("manager_config_eje.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("event", sa.String(length=64), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
    )
    op.create_index(
        "ix_manager_config_eje_history_manager_id", "manager_config_eje_history", ["manager_id"]
    )
    op.create_index(
        "ix_manager_config_eje_history_timestamp", "manager_config_eje_history", ["timestamp"]
    )

    op.create_table(
        "manager_config_eje_alerts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "manager_id",
            sa.Integer(),
            sa.ForeignKey("manager_config_eje.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("level", sa.String(length=16), nullable=False, server_default="warning"),
        sa.Column("worker_type", sa.String(length=32), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("acknowledged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("acknowledged_at", sa.DateTime(), nullable=True),
        sa.Column("acknowledged_by", sa.String(length=255), nullable=True),
    )
    op.create_index(
        "ix_manager_config_eje_alerts_manager_id", "manager_config_eje_alerts", ["manager_id"]
    )

    op.create_table(
        "manager_config_eje_daily_stats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "manager_id",
            sa.Integer(),
            sa.ForeignKey("manager_config_eje.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("cycles", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("verified", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("errors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stuck_cleared", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("peak_workers", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("manager_id", "date", name="uq_manager_daily_stat"),
    )

    op.create_table(
        "worker_stats_eje",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("worker_type", sa.String(length=32), nullable=False),
        sa.Column("worker_id", sa.String(length=128), nullable=False),
        sa.Column("total_runs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_processed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_success", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_errors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_run_at", sa.DateTime(), nullable=True),
        sa.Column("current_run", sa.JSON(), nullable=True),
        sa.UniqueConstraint("worker_type", "worker_id", name="uq_worker_stats"),
    )
    op.create_index("ix_worker_stats_eje_worker_type", "worker_stats_eje", ["worker_type"])

    op.create_table(
        "worker_stats_eje_runs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "stats_id",
            sa.Integer(),
            sa.ForeignKey("worker_stats_eje.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("finished_at", sa.DateTime(), nullable=True),
        sa.Column("processed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("success", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("errors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="completed"),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_worker_stats_eje_runs_stats_id", "worker_stats_eje_runs", ["stats_id"])
    op.create_index("ix_worker_stats_eje_runs_started_at", "worker_stats_eje_runs", ["started_at"])


def downgrade() -> None:
    op.drop_index("ix_worker_stats_eje_runs_started_at", table_name="worker_stats_eje_runs")
    op.drop_index("ix_worker_stats_eje_runs_stats_id", table_name="worker_stats_eje_runs")
    op.drop_table("worker_stats_eje_runs")
    op.drop_index("ix_worker_stats_eje_worker_type", table_name="worker_stats_eje")
    op.drop_table("worker_stats_eje")
    op.drop_table("manager_config_eje_daily_stats")
    op.drop_index("ix_manager_config_eje_alerts_manager_id", table_name="manager_config_eje_alerts")
    op.drop_table("manager_config_eje_alerts")
    op.drop_index("ix_manager_config_eje_history_timestamp", table_name="manager_config_eje_history")
    op.drop_index("ix_manager_config_eje_history_manager_id", table_name="manager_config_eje_history")
    op.drop_table("manager_config_eje_history")
    op.drop_table("manager_config_eje")
