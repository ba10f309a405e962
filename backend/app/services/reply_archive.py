from typing import Callable, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from ..core.errors import StorageError
from ..models.reply_model import ReplyRecord


class ReplyArchive:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def create(self, owner_email: str, body: str, source_email_id: Optional[int] = None) -> ReplyRecord:
        db = self._session_factory()
        try:
            reply = ReplyRecord(owner_email=owner_email, body=body, source_email_id=source_email_id)
            db.add(reply)
            db.commit()
            db.refresh(reply)
            db.expunge(reply)
            return reply
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"reply insert failed: {e}") from e
        finally:
            db.close()

    def list_for_owner(self, owner_email: str) -> List[ReplyRecord]:
        db = self._session_factory()
        try:
            rows = db.query(ReplyRecord).filter(ReplyRecord.owner_email == owner_email).order_by(ReplyRecord.id).all()
            for r in rows:
                db.expunge(r)
            return rows
        except SQLAlchemyError as e:
            raise StorageError(f"reply read failed: {e}") from e
        finally:
            db.close()

    def count(self) -> int:
        db = self._session_factory()
        try:
            return db.query(ReplyRecord).count()
        except SQLAlchemyError as e:
            raise StorageError(f"count failed: {e}") from e
        finally:
            db.close()
