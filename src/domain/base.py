"""Shared base for SQLModel domain entities"""

import uuid
from sqlalchemy import BigInteger, Integer
from sqlmodel import SQLModel


def generate_uuid() -> str:
    """Generate an external-facing identifier (UUID4, canonical string form)"""
    return str(uuid.uuid4())


# BIGINT keys on PostgreSQL; SQLite only autoincrements INTEGER PRIMARY KEY.
PrimaryKeyType = BigInteger().with_variant(Integer, "sqlite")


class BaseModel(SQLModel):
    """Base class for all persisted domain entities"""
    pass
