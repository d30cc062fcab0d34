"""Database models."""

from sqlalchemy import MetaData

from clinicops.models.appointments import appointment_status_history, appointments
from clinicops.models.appointments import metadata as appointments_metadata
from clinicops.models.doctors import doctors
from clinicops.models.doctors import metadata as doctors_metadata
from clinicops.models.medical_records import medical_records
from clinicops.models.medical_records import metadata as medical_records_metadata

# Combined metadata for create_all and migrations
metadata = MetaData()
for _source in (appointments_metadata, doctors_metadata, medical_records_metadata):
    for _table in _source.tables.values():
        _table.to_metadata(metadata)

__all__ = [
    "appointment_status_history",
    "appointments",
    "doctors",
    "medical_records",
    "metadata",
]
