"""Database models for the subway lines application."""

# Import all models to register them with SQLAlchemy metadata
from subway.models.base import Base, BaseModel
from subway.models.line import Line, Section
from subway.models.station import Station

__all__ = [
    # Base
    "Base",
    "BaseModel",
    # Network models
    "Station",
    "Line",
    "Section",
]
