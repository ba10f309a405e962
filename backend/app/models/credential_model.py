from sqlalchemy import Column, String, DateTime
from ..db.database import Base
from datetime import datetime, timezone

class Credential(Base):
    __tablename__ = 'credentials'
    # opaque bearer token handed to the client after the OAuth exchange
    id = Column(String, primary_key=True, index=True)
    account_id = Column(String, index=True)
    access_token = Column(String, nullable=False)
    email_address = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
