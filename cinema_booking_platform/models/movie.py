"""
Movie model.
"""

from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .showtime import Showtime


class Movie(Base):
    """A movie that can be scheduled into showtimes."""

    __tablename__ = "movies"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    showtimes: Mapped[List["Showtime"]] = relationship("Showtime", back_populates="movie")

    def __repr__(self) -> str:
        return f"<Movie(id={self.id}, title='{self.title}')>"
