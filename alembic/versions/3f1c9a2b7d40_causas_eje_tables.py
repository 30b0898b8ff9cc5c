"""causas eje tables

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-19 10:12:41.118204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f1c9a2b7d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "usuarios",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column(
            "role",
            sa.Enum("USER_ROLE", "ADMIN_ROLE", "SUPERADMIN_ROLE", name="userrole"),
            nullable=False,
            server_default="USER_ROLE",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True
        ),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_usuarios_email", "usuarios", ["email"], unique=True)

    op.create_table(
        "causas_eje",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("cuij", sa.String(length=128), nullable=True),
        sa.Column("numero", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("anio", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("caratula", sa.Text(), nullable=True),
        sa.Column("juzgado", sa.String(length=255), nullable=True),
        sa.Column("objeto", sa.String(length=255), nullable=True),
        sa.Column("estado", sa.String(length=64), nullable=True),
        sa.Column("fecha_inicio", sa.DateTime(), nullable=True),
        sa.Column("source", sa.String(length=32), nullable=False, server_default="app"),
        sa.Column("search_term", sa.String(length=255), nullable=True),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        sa.Column("is_valid", sa.Boolean(), nullable=True),
        sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("details_loaded", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("details_last_update", sa.DateTime(), nullable=True),
        sa.Column("update_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("error_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("stuck_since", sa.DateTime(), nullable=True),
        sa.Column("locked_by", sa.String(length=128), nullable=True),
        sa.Column("locked_at", sa.DateTime(), nullable=True),
        sa.Column("lock_fence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("movimientos", sa.JSON(), nullable=True),
        sa.Column("movimientos_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("intervinientes", sa.JSON(), nullable=True),
        sa.Column("causas_relacionadas", sa.JSON(), nullable=True),
        sa.Column("update_history", sa.JSON(), nullable=True),
        sa.Column("is_pivot", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("resolved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column(
            "resolved_to_id",
            sa.Integer(),
            sa.ForeignKey("causas_eje.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True
        ),
        sa.Column(
            "updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True
        ),
    )
    op.create_index("ix_causas_eje_cuij", "causas_eje", ["cuij"])
    op.create_index("ix_causas_numero_anio", "causas_eje", ["numero", "anio"])
    op.create_index("ix_causas_lock", "causas_eje", ["locked_by", "locked_at"])

    op.create_table(
        "causas_eje_folders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "causa_id",
            sa.Integer(),
            sa.ForeignKey("causas_eje.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("folder_id", sa.String(length=64), nullable=False),
        sa.UniqueConstraint("causa_id", "folder_id", name="uq_causa_folder"),
    )
    op.create_index("ix_causas_eje_folders_folder_id", "causas_eje_folders", ["folder_id"])

    op.create_table(
        "causas_eje_users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "causa_id",
            sa.Integer(),
            sa.ForeignKey("causas_eje.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.UniqueConstraint("causa_id", "user_id", name="uq_causa_user"),
    )
    op.create_index("ix_causas_eje_users_user_id", "causas_eje_users", ["user_id"])

    op.create_table(
        "causas_eje_user_prefs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "causa_id",
            sa.Integer(),
            sa.ForeignKey("causas_eje.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("causa_id", "user_id", name="uq_causa_user_pref"),
    )

    op.create_table(
        "causas_eje_pivot_links",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "pivot_id",
            sa.Integer(),
            sa.ForeignKey("causas_eje.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "causa_id",
            sa.Integer(),
            sa.ForeignKey("causas_eje.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("pivot_id", "causa_id", name="uq_pivot_causa"),
    )

    op.create_table(
        "configuracion_eje",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=64), nullable=False, unique=True),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("worker_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("batch_size", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("delay_between_requests", sa.Integer(), nullable=False, server_default="2000"),
        sa.Column("delay_between_batches", sa.Integer(), nullable=False, server_default="10000"),
        sa.Column("max_errors_before_stop", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("schedule", sa.JSON(), nullable=False),
        sa.Column("rate_limit", sa.JSON(), nullable=False),
        sa.Column(
            "updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True
        ),
    )


def downgrade() -> None:
    op.drop_table("configuracion_eje")
    op.drop_table("causas_eje_pivot_links")
    op.drop_table("causas_eje_user_prefs")
    op.drop_index("ix_causas_eje_users_user_id", table_name="causas_eje_users")
    op.drop_table("causas_eje_users")
    op.drop_index("ix_causas_eje_folders_folder_id", table_name="causas_eje_folders")
    op.drop_table("causas_eje_folders")
    op.drop_index("ix_causas_lock", table_name="causas_eje")
    op.drop_index("ix_causas_numero_anio", table_name="causas_eje")
    op.drop_index("ix_causas_eje_cuij", table_name="causas_eje")
    op.drop_table("causas_eje")
    op.drop_index("ix_usuarios_email", table_name="usuarios")
    op.drop_table("usuarios")
