"""Declarative base for cache tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
