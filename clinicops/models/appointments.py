"""Appointment and status history tables using SQLAlchemy Core."""

import uuid

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    Uuid,
    func,
    text,
)

# Metadata for lifecycle tables
metadata = MetaData()

APPOINTMENT_STATUSES = (
    "pending",
    "scheduled",
    "checked_in",
    "in_progress",
    "completed",
    "cancelled",
    "no_show",
)

HISTORY_CHANGE_TYPES = ("status_change", "status_reversion", "doctor_assignment")


def _in_list(column: str, values: tuple[str, ...]) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    # Ownership / references (opaque to the lifecycle engine)
    Column("patient_id", Uuid, nullable=False),
    Column("service_id", Uuid, nullable=False),
    Column("doctor_id", Uuid, nullable=True),
    Column("appointment_date", Date, nullable=True),
    # Status management
    Column("status", Text, nullable=False, server_default="pending"),
    # Milestone timestamps
    Column("checked_in_at", DateTime(timezone=True), nullable=True),
    Column("started_at", DateTime(timezone=True), nullable=True),
    Column("completed_at", DateTime(timezone=True), nullable=True),
    # Set only while holding the service's consultation slot for the day
    Column("active_consultation", Boolean, nullable=True),
    # Optimistic concurrency
    Column("version", Integer, nullable=False, server_default="1"),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(_in_list("status", APPOINTMENT_STATUSES), name="appointments_status_check"),
    CheckConstraint(
        "active_consultation IS NULL OR status = 'in_progress'",
        name="appointments_active_consultation_check",
    ),
    Index("ix_appointments_service_date_status", "service_id", "appointment_date", "status"),
    Index(
        "uq_appointments_active_consultation",
        "service_id",
        "appointment_date",
        unique=True,
        postgresql_where=text("active_consultation"),
        sqlite_where=text("active_consultation"),
    ),
)

# Append-only status history ledger
appointment_status_history = Table(
    "appointment_status_history",
    metadata,
    # Monotonic id is the ledger order
    Column(
        "id",
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    ),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("change_type", Text, nullable=False),
    Column("from_status", Text, nullable=True),
    Column("to_status", Text, nullable=True),
    Column("reason", Text, nullable=True),
    Column("actor_id", Uuid, nullable=True),
    # Reversions point at the entry they undo
    Column(
        "reverted_entry_id",
        BigInteger().with_variant(Integer, "sqlite"),
        ForeignKey("appointment_status_history.id"),
        nullable=True,
    ),
    # Doctor assignment audit
    Column("previous_doctor_id", Uuid, nullable=True),
    Column("new_doctor_id", Uuid, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        _in_list("change_type", HISTORY_CHANGE_TYPES),
        name="appointment_status_history_change_type_check",
    ),
    CheckConstraint(
        "change_type = 'doctor_assignment' OR to_status IS NOT NULL",
        name="appointment_status_history_to_status_check",
    ),
    CheckConstraint(
        "change_type != 'status_reversion' OR reverted_entry_id IS NOT NULL",
        name="appointment_status_history_reversion_ref_check",
    ),
)
