"""Doctor directory table using SQLAlchemy Core."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, MetaData, Table, Text, Uuid, func, true

metadata = MetaData()

doctors = Table(
    "doctors",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column("full_name", Text, nullable=False),
    Column("specialization", Text, nullable=True),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
