from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import List, Literal, Optional

class ReplyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_email: str
    body: str
    source_email_id: Optional[int] = None
    created_at: datetime

class GenerationItem(BaseModel):
    email_id: int
    subject: Optional[str] = None
    status: Literal['created', 'failed']
    reply_id: Optional[int] = None
    error: Optional[str] = None

class GenerationReport(BaseModel):
    total: int = 0
    created: int = 0
    failed: int = 0
    items: List[GenerationItem] = []

class ReplyJobOut(BaseModel):
    job_id: str
    status: Literal['pending', 'running', 'completed', 'failed']
    report: Optional[GenerationReport] = None
    error: Optional[str] = None
    created_at: datetime
    finished_at: Optional[datetime] = None
