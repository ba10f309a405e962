import asyncio
import logging
from typing import List
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from ..core.clients import get_reply_archive
from ..core.errors import StorageError
from ..models.credential_model import Credential
from ..schemas.reply import ReplyOut
from ..security.bearer import get_current_credential
from ..services.credential_store import account_ref
from ..services.reply_archive import ReplyArchive

router = APIRouter()
log = logging.getLogger(__name__)

@router.get("", response_model=List[ReplyOut])
async def list_replies(
    credential: Credential = Depends(get_current_credential),
    replies: ReplyArchive = Depends(get_reply_archive),
):
    try:
        return await asyncio.to_thread(replies.list_for_owner, credential.email_address)
    except StorageError as e:
        log.error("reply_read_failed", exc_info=e, extra={"account_id": account_ref(credential)})
        return JSONResponse(status_code=500, content={"message": "Failed to load replies"})
