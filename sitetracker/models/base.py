# File: sitetracker/models/base.py

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    The only table is the key-value store behind KeyValueStorage.
    """
    pass
