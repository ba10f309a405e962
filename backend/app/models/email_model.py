from sqlalchemy import Column, Integer, String, DateTime, Text, UniqueConstraint
from ..db.database import Base
from datetime import datetime, timezone

class EmailRecord(Base):
    __tablename__ = 'emails'
    __table_args__ = (
        UniqueConstraint('account_id', 'subject', 'snippet', name='uq_emails_account_subject_snippet'),
    )
    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(String, index=True, nullable=False)
    own_email = Column(String, index=True)
    from_email = Column(String, index=True)
    subject = Column(String)
    snippet = Column(Text)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
