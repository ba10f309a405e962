import hashlib
import logging
import uuid
from typing import Callable, Optional
from sqlalchemy.orm import Session
from ..models.credential_model import Credential

log = logging.getLogger(__name__)


def account_ref(credential: Credential) -> str:
    """Identifier safe to log: the provider account id, else a digest of the bearer token."""
    if credential.account_id:
        return credential.account_id
    return "tok-" + hashlib.sha256(credential.id.encode()).hexdigest()[:12]


class CredentialStore:
    """Maps opaque bearer tokens to stored mailbox credentials."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def create_or_update(self, email_address: str, access_token: str, account_id: Optional[str] = None) -> Credential:
        db = self._session_factory()
        try:
            cred = db.query(Credential).filter(Credential.email_address == email_address).first()
            if cred is None:
                cred = Credential(
                    id=uuid.uuid4().hex,
                    email_address=email_address,
                    access_token=access_token,
                    account_id=account_id,
                )
                db.add(cred)
                log.info("credential_created", extra={"account_id": account_ref(cred)})
            else:
                cred.access_token = access_token
                if account_id:
                    cred.account_id = account_id
                log.info("credential_updated", extra={"account_id": account_ref(cred)})
            db.commit()
            db.refresh(cred)
            db.expunge(cred)
            return cred
        finally:
            db.close()

    def find(self, token: Optional[str]) -> Optional[Credential]:
        if not token:
            return None
        db = self._session_factory()
        try:
            cred = db.query(Credential).filter(Credential.id == token).first()
            if cred is not None:
                db.expunge(cred)
            return cred
        finally:
            db.close()
