"""Declarative base shared by every SQLAlchemy model."""
from sqlalchemy.orm import declarative_base

# Base class for SQLAlchemy models
Base = declarative_base()
