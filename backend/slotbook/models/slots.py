from sqlalchemy import Column, Float, Index, Integer, Text, text
from sqlalchemy.orm import declarative_base

Base = declarative_base()
metadata = Base.metadata


class TimeSlots(Base):
    """Persisted slot override. Rows exist only for non-virtual slots."""

    __tablename__ = 'time_slots'
    __table_args__ = (
        Index('ix_time_slots_date', 'date'),
    )

    id = Column(Text, primary_key=True)  # "{date}-{hour}"
    date = Column(Text, nullable=False)
    hour = Column(Float, nullable=False)
    available = Column(Integer, nullable=False, server_default=text('0'))
    booked = Column(Integer, nullable=False, server_default=text('0'))
    booked_by = Column(Text)
    booked_email = Column(Text)
    booked_phone = Column(Text)
    notes = Column(Text)
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
