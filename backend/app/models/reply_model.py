from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from ..db.database import Base
from datetime import datetime, timezone

class ReplyRecord(Base):
    __tablename__ = 'replies'
    id = Column(Integer, primary_key=True, index=True)
    owner_email = Column(String, index=True, nullable=False)
    body = Column(Text, default='')
    # originating archived email; nullable so a reply outlives a purged email row
    source_email_id = Column(Integer, ForeignKey('emails.id'), nullable=True, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
