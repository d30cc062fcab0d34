"""Medical records table using SQLAlchemy Core.

Owned by the medical records workflow. The appointment lifecycle only reads
it to decide whether a completed visit may still be reverted.
"""

import uuid

from sqlalchemy import Column, DateTime, MetaData, Table, Text, Uuid, func

metadata = MetaData()

medical_records = Table(
    "medical_records",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    # At most one record per appointment
    Column("appointment_id", Uuid, nullable=False, unique=True),
    Column("patient_id", Uuid, nullable=False, index=True),
    Column("diagnosis", Text, nullable=False),
    Column("treatment_plan", Text, nullable=True),
    Column("notes", Text, nullable=True),
    Column("created_by", Uuid, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
