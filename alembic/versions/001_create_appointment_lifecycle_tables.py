"""Create appointment lifecycle tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # Doctor directory
    op.create_table(
        "doctors",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("specialization", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Appointments
    op.create_table(
        "appointments",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("patient_id", postgresql.UUID(), nullable=False),
        sa.Column("service_id", postgresql.UUID(), nullable=False),
        sa.Column("doctor_id", postgresql.UUID(), nullable=True),
        sa.Column("appointment_date", sa.Date(), nullable=True),
        sa.Column("status", sa.Text(), server_default="pending", nullable=False),
        sa.Column("checked_in_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("started_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("completed_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("active_consultation", sa.Boolean(), nullable=True),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'scheduled', 'checked_in', 'in_progress', "
            "'completed', 'cancelled', 'no_show')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "active_consultation IS NULL OR status = 'in_progress'",
            name="appointments_active_consultation_check",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["doctor_id"],
            ["doctors.id"],
            name="fk_appointments_doctor_id",
            ondelete="SET NULL",
        ),
    )

    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_doctor_id", "appointments", ["doctor_id"])
    op.create_index(
        "ix_appointments_service_date_status",
        "appointments",
        ["service_id", "appointment_date", "status"],
    )
    # One consultation at a time per service and day
    op.create_index(
        "uq_appointments_active_consultation",
        "appointments",
        ["service_id", "appointment_date"],
        unique=True,
        postgresql_where=sa.text("active_consultation"),
    )

    # Append-only status history ledger
    op.create_table(
        "appointment_status_history",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column("appointment_id", postgresql.UUID(), nullable=False),
        sa.Column("change_type", sa.Text(), nullable=False),
        sa.Column("from_status", sa.Text(), nullable=True),
        sa.Column("to_status", sa.Text(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("actor_id", postgresql.UUID(), nullable=True),
        sa.Column("reverted_entry_id", sa.BigInteger(), nullable=True),
        sa.Column("previous_doctor_id", postgresql.UUID(), nullable=True),
        sa.Column("new_doctor_id", postgresql.UUID(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "change_type IN ('status_change', 'status_reversion', 'doctor_assignment')",
            name="appointment_status_history_change_type_check",
        ),
        sa.CheckConstraint(
            "change_type = 'doctor_assignment' OR to_status IS NOT NULL",
            name="appointment_status_history_to_status_check",
        ),
        sa.CheckConstraint(
            "change_type != 'status_reversion' OR reverted_entry_id IS NOT NULL",
            name="appointment_status_history_reversion_ref_check",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["appointment_id"],
            ["appointments.id"],
            name="fk_appointment_status_history_appointment_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["reverted_entry_id"],
            ["appointment_status_history.id"],
            name="fk_appointment_status_history_reverted_entry_id",
        ),
    )

    op.create_index(
        "ix_appointment_status_history_appointment_id",
        "appointment_status_history",
        ["appointment_id", "id"],
    )

    # The ledger is append-only
    op.execute(
        """
        CREATE OR REPLACE FUNCTION reject_status_history_mutation()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'appointment_status_history is append-only';
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    op.execute(
        """
        CREATE TRIGGER appointment_status_history_append_only
        BEFORE UPDATE OR DELETE ON appointment_status_history
        FOR EACH ROW EXECUTE FUNCTION reject_status_history_mutation();
        """
    )

    # Medical records (owned by the records workflow)
    op.create_table(
        "medical_records",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("appointment_id", postgresql.UUID(), nullable=False),
        sa.Column("patient_id", postgresql.UUID(), nullable=False),
        sa.Column("diagnosis", sa.Text(), nullable=False),
        sa.Column("treatment_plan", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", postgresql.UUID(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("appointment_id", name="uq_medical_records_appointment_id"),
    )

    op.create_index("ix_medical_records_patient_id", "medical_records", ["patient_id"])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("ix_medical_records_patient_id", table_name="medical_records")
    op.drop_table("medical_records")

    op.execute(
        "DROP TRIGGER IF EXISTS appointment_status_history_append_only "
        "ON appointment_status_history"
    )
    op.execute("DROP FUNCTION IF EXISTS reject_status_history_mutation()")
    op.drop_index(
        "ix_appointment_status_history_appointment_id",
        table_name="appointment_status_history",
    )
    op.drop_table("appointment_status_history")

    op.drop_index("uq_appointments_active_consultation", table_name="appointments")
    op.drop_index("ix_appointments_service_date_status", table_name="appointments")
    op.drop_index("ix_appointments_doctor_id", table_name="appointments")
    op.drop_index("ix_appointments_patient_id", table_name="appointments")
    op.drop_table("appointments")

    op.drop_table("doctors")
