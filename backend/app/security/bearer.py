from typing import Optional
from fastapi import Depends, Header, HTTPException
from ..core.clients import get_credential_store
from ..models.credential_model import Credential
from ..services.credential_store import CredentialStore


def _token_from_header(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    value = authorization.strip()
    if value.lower().startswith('bearer '):
        value = value[7:].strip()
    return value or None


def get_current_credential(
    authorization: Optional[str] = Header(None),
    store: CredentialStore = Depends(get_credential_store),
) -> Credential:
    """Resolve the Authorization header (raw token or 'Bearer <token>') to a stored credential."""
    token = _token_from_header(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    credential = store.find(token)
    if credential is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return credential
