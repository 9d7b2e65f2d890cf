"""Station model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from subway.models.base import BaseModel


class Station(BaseModel):
    """A named stop that sections of any line can connect."""

    __tablename__ = "stations"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation of the station."""
        return f"<Station(id={self.id}, name={self.name})>"
