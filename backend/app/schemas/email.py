from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import Optional

class EmailRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: str
    own_email: Optional[str] = None
    from_email: Optional[str] = None
    subject: Optional[str] = None
    snippet: Optional[str] = None
    created_at: datetime
