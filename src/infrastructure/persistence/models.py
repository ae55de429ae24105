"""SQLAlchemy models for the demo persistence layer.

The tables themselves are created with raw DDL by the schema step, since ``cpu_data``
has to be converted into a hypertable right after creation. These models describe the
same tables for inserts and read queries.
"""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class MachineModel(Base):
    """A synthetic machine whose CPU usage is recorded."""

    __tablename__ = "machines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)


class CpuDataModel(Base):
    """CPU measurement row stored in the ``cpu_data`` hypertable.

    The table has no primary key; ``time`` is only mapped as one
    so the ORM can address rows.
    """

    __tablename__ = "cpu_data"

    time = Column(DateTime(timezone=True), nullable=False, primary_key=True)
    machine_id = Column(Integer, ForeignKey("machines.id"), nullable=True)
    value = Column(Float(precision=53), nullable=True)

