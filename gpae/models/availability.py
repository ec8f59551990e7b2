# gpae/models/availability.py
"""
Weekly availability of instructors.

Each row is a half-open interval [start_time, end_time) on one weekday
(0 = Monday .. 6 = Sunday), in the school's reference timezone. Discrete
hour labels are converted to unit-length windows when a schedule is saved.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Time
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class AvailabilityWindow(Base):
    """One working window of an instructor's weekly schedule."""

    __tablename__ = "availability_windows"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    instructor_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    weekday = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    # None means "until midnight" (24:00), which datetime.time cannot express
    end_time = Column(Time, nullable=True)

    instructor = relationship("User", back_populates="availability_windows")

    __table_args__ = (
        CheckConstraint("weekday >= 0 AND weekday <= 6", name="ck_availability_weekday"),
        Index("ix_availability_instructor_weekday", "instructor_id", "weekday"),
    )

    def covers(self, start, end) -> bool:
        """True when [start, end) lies inside this window. ``end`` may be None (midnight)."""
        if start < self.start_time:
            return False
        if self.end_time is None:
            return True
        if end is None:
            return False
        return end <= self.end_time

    def __repr__(self) -> str:
        end = self.end_time.strftime("%H:%M") if self.end_time else "24:00"
        return f"<AvailabilityWindow {self.weekday} {self.start_time:%H:%M}-{end}>"
