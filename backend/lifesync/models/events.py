"""Calendar event persistence model."""
from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from . import Base


class Event(Base):
    """Calendar entry owned by exactly one user."""

    __tablename__ = "events"
    __table_args__ = (CheckConstraint('start < "end"', name="ck_events_start_before_end"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    start = Column(DateTime(timezone=True), nullable=False)
    end = Column(DateTime(timezone=True), nullable=False)
    color = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="events")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Event(id={self.id!s}, user_id={self.user_id!s}, title={self.title!r})"
