import enum
import logging
from typing import Callable, List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from ..core.errors import StorageError
from ..models.email_model import EmailRecord

log = logging.getLogger(__name__)


class ArchiveWrite(enum.Enum):
    CREATED = 'created'
    CONFLICT = 'conflict'


class EmailArchive:
    """Previously ingested email summaries, unique per (account, subject, snippet).

    Every call opens its own session, so concurrent inserts never share one.
    Duplicate detection is left to the unique constraint in the store.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def insert(self, account_id: str, own_email: str, from_email: Optional[str], subject: Optional[str], snippet: Optional[str]) -> ArchiveWrite:
        db = self._session_factory()
        try:
            db.add(EmailRecord(
                account_id=account_id,
                own_email=own_email,
                from_email=from_email,
                subject=subject,
                snippet=snippet,
            ))
            db.commit()
            return ArchiveWrite.CREATED
        except IntegrityError:
            db.rollback()
            return ArchiveWrite.CONFLICT
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"email insert failed: {e}") from e
        finally:
            db.close()

    def list_for_owner(self, own_email: str) -> List[EmailRecord]:
        db = self._session_factory()
        try:
            rows = db.query(EmailRecord).filter(EmailRecord.own_email == own_email).order_by(EmailRecord.id).all()
            for r in rows:
                db.expunge(r)
            return rows
        except SQLAlchemyError as e:
            raise StorageError(f"email read failed: {e}") from e
        finally:
            db.close()

    def count(self) -> int:
        db = self._session_factory()
        try:
            return db.query(EmailRecord).count()
        except SQLAlchemyError as e:
            raise StorageError(f"count failed: {e}") from e
        finally:
            db.close()
