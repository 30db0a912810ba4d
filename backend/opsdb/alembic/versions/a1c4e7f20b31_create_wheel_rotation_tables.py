"""create wheel rotation, activity log and permission tables

Revision ID: a1c4e7f20b31
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a1c4e7f20b31"
down_revision = None
branch_labels = None
depends_on = None


ROTATION_FREQUENCIES = ("weekly", "monthly", "quarterly", "biannually", "annually")


def upgrade() -> None:
    op.create_table(
        "wheel_rotations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.String(length=64), nullable=False),
        sa.Column("arrival_date", sa.Date(), nullable=False),
        sa.Column("station", sa.String(length=64), nullable=False),
        sa.Column("airline", sa.String(length=128), nullable=False),
        sa.Column("wheel_part_number", sa.String(length=64), nullable=False),
        sa.Column("wheel_serial_number", sa.String(length=64), nullable=False),
        sa.Column("current_position", sa.Integer(), nullable=False),
        sa.Column(
            "rotation_frequency",
            sa.Enum(*ROTATION_FREQUENCIES, name="rotation_frequency_enum", native_enum=False),
            nullable=False,
        ),
        sa.Column("last_rotation_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_rotation_due", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by_user_id", sa.String(length=64), nullable=True),
        sa.Column("updated_by_user_id", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "current_position >= 0 AND current_position < 360",
            name="ck_wheel_rotations_position_range",
        ),
    )
    op.create_index("ix_wheel_rotations_id", "wheel_rotations", ["id"])
    op.create_index("ix_wheel_rotations_company_id", "wheel_rotations", ["company_id"])
    op.create_index("ix_wheel_rotations_station", "wheel_rotations", ["station"])
    op.create_index("ix_wheel_rotations_airline", "wheel_rotations", ["airline"])
    op.create_index(
        "ix_wheel_rotations_company_active_due",
        "wheel_rotations",
        ["company_id", "is_active", "next_rotation_due"],
    )
    op.create_index(
        "ix_wheel_rotations_company_serial",
        "wheel_rotations",
        ["company_id", "wheel_serial_number"],
    )

    op.create_table(
        "wheel_rotation_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("wheel_rotation_id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.String(length=64), nullable=False),
        sa.Column("rotation_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("previous_position", sa.Integer(), nullable=False),
        sa.Column("new_position", sa.Integer(), nullable=False),
        sa.Column("performed_by", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["wheel_rotation_id"], ["wheel_rotations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "previous_position >= 0 AND previous_position < 360",
            name="ck_wheel_rotation_history_previous_range",
        ),
        sa.CheckConstraint(
            "new_position >= 0 AND new_position < 360",
            name="ck_wheel_rotation_history_new_range",
        ),
    )
    op.create_index("ix_wheel_rotation_history_id", "wheel_rotation_history", ["id"])
    op.create_index(
        "ix_wheel_rotation_history_wheel_rotation_id",
        "wheel_rotation_history",
        ["wheel_rotation_id"],
    )
    op.create_index("ix_wheel_rotation_history_company_id", "wheel_rotation_history", ["company_id"])
    op.create_index(
        "ix_wheel_rotation_history_wheel_date",
        "wheel_rotation_history",
        ["wheel_rotation_id", "rotation_date"],
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("resource_type", sa.String(length=64), nullable=False),
        sa.Column("resource_id", sa.String(length=64), nullable=True),
        sa.Column("resource_title", sa.String(length=255), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activity_logs_id", "activity_logs", ["id"])
    op.create_index("ix_activity_logs_company_id", "activity_logs", ["company_id"])
    op.create_index("ix_activity_logs_user_id", "activity_logs", ["user_id"])
    op.create_index(
        "ix_activity_logs_company_resource",
        "activity_logs",
        ["company_id", "resource_type", "resource_id"],
    )
    op.create_index("ix_activity_logs_company_action", "activity_logs", ["company_id", "action"])
    op.create_index(
        "ix_activity_logs_company_time_desc",
        "activity_logs",
        ["company_id", sa.text("created_at DESC")],
    )

    op.create_table(
        "user_permissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("permission", sa.String(length=64), nullable=False),
        sa.Column("granted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_by_user_id", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "permission", name="uq_user_permissions_user_permission"),
    )
    op.create_index("ix_user_permissions_id", "user_permissions", ["id"])
    op.create_index("ix_user_permissions_user_id", "user_permissions", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_user_permissions_user_id", table_name="user_permissions")
    op.drop_index("ix_user_permissions_id", table_name="user_permissions")
    op.drop_table("user_permissions")

    op.drop_index("ix_activity_logs_company_time_desc", table_name="activity_logs")
    op.drop_index("ix_activity_logs_company_action", table_name="activity_logs")
    op.drop_index("ix_activity_logs_company_resource", table_name="activity_logs")
    op.drop_index("ix_activity_logs_user_id", table_name="activity_logs")
    op.drop_index("ix_activity_logs_company_id", table_name="activity_logs")
    op.drop_index("ix_activity_logs_id", table_name="activity_logs")
    op.drop_table("activity_logs")

    op.drop_index("ix_wheel_rotation_history_wheel_date", table_name="wheel_rotation_history")
    op.drop_index("ix_wheel_rotation_history_company_id", table_name="wheel_rotation_history")
    op.drop_index("ix_wheel_rotation_history_wheel_rotation_id", table_name="wheel_rotation_history")
    op.drop_index("ix_wheel_rotation_history_id", table_name="wheel_rotation_history")
    op.drop_table("wheel_rotation_history")

    op.drop_index("ix_wheel_rotations_company_serial", table_name="wheel_rotations")
    op.drop_index("ix_wheel_rotations_company_active_due", table_name="wheel_rotations")
    op.drop_index("ix_wheel_rotations_airline", table_name="wheel_rotations")
    op.drop_index("ix_wheel_rotations_station", table_name="wheel_rotations")
    op.drop_index("ix_wheel_rotations_company_id", table_name="wheel_rotations")
    op.drop_index("ix_wheel_rotations_id", table_name="wheel_rotations")
    op.drop_table("wheel_rotations")
