import asyncio
import logging
from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from ..core.clients import (
    get_completion_engine,
    get_email_archive,
    get_gateway,
    get_job_registry,
    get_reply_archive,
    get_settings,
)
from ..core.config import Settings
from ..core.errors import StorageError
from ..models.credential_model import Credential
from ..schemas.email import EmailRecordOut
from ..schemas.reply import ReplyJobOut
from ..security.bearer import get_current_credential
from ..services.completion_engine import CompletionEngine
from ..services.credential_store import account_ref
from ..services.email_archive import EmailArchive
from ..services.ingestion import ingest_latest_threads
from ..services.mailbox_gateway import MailboxGateway
from ..services.reply_archive import ReplyArchive
from ..services.reply_generation import ReplyJobRegistry, generate_replies

router = APIRouter()
log = logging.getLogger(__name__)

@router.get("/ingest", status_code=201)
async def ingest(
    credential: Credential = Depends(get_current_credential),
    gateway: MailboxGateway = Depends(get_gateway),
    archive: EmailArchive = Depends(get_email_archive),
    settings: Settings = Depends(get_settings),
):
    """Fetch the latest threads and archive one summary per thread, skipping duplicates."""
    result = await ingest_latest_threads(credential, gateway, archive, limit=settings.ingest_thread_limit)
    headers = {
        "X-Ingest-Created": str(result.created),
        "X-Ingest-Duplicates": str(result.duplicates),
        "X-Ingest-Failed": str(result.failed),
    }
    return JSONResponse(status_code=201, content=result.threads, headers=headers)

@router.get("/archive", response_model=List[EmailRecordOut])
async def list_archived(
    credential: Credential = Depends(get_current_credential),
    archive: EmailArchive = Depends(get_email_archive),
):
    try:
        return await asyncio.to_thread(archive.list_for_owner, credential.email_address)
    except StorageError as e:
        log.error("archive_read_failed", exc_info=e, extra={"account_id": account_ref(credential)})
        return JSONResponse(status_code=500, content={"message": "Failed to load archived emails"})

@router.get("/message")
async def get_message(
    id: str = Query(..., min_length=1),
    credential: Credential = Depends(get_current_credential),
    gateway: MailboxGateway = Depends(get_gateway),
):
    return await gateway.get_message(credential.access_token, id)

@router.get("/file")
async def get_file(
    id: str = Query(..., min_length=1),
    credential: Credential = Depends(get_current_credential),
    gateway: MailboxGateway = Depends(get_gateway),
):
    """Download an attachment and return its raw bytes."""
    meta = await gateway.get_file(credential.access_token, id)
    content = await gateway.download_file(credential.access_token, id)
    media_type = (meta or {}).get('content_type') or 'application/octet-stream'
    return Response(content=content, media_type=media_type)

@router.get("/generate-replies")
async def trigger_reply_generation(
    background_tasks: BackgroundTasks,
    background: bool = Query(False, description="Run as a background job and return a pollable handle"),
    credential: Credential = Depends(get_current_credential),
    archive: EmailArchive = Depends(get_email_archive),
    engine: CompletionEngine = Depends(get_completion_engine),
    replies: ReplyArchive = Depends(get_reply_archive),
    jobs: ReplyJobRegistry = Depends(get_job_registry),
):
    """Draft a reply for every archived email of the account.

    By default waits for every draft and returns an itemized report. With
    ``background=true`` returns 202 and a job handle instead.
    """
    if not background:
        report = await generate_replies(credential, archive, engine, replies)
        return report.model_dump()
    job = jobs.create(credential.id)
    background_tasks.add_task(jobs.run, job.job_id, lambda: generate_replies(credential, archive, engine, replies))
    log.info("reply_job_queued", extra={"job_id": job.job_id, "account_id": account_ref(credential)})
    return JSONResponse(status_code=202, content=job.model_dump(mode='json'))

@router.get("/generate-replies/jobs/{job_id}", response_model=ReplyJobOut)
def reply_job_status(
    job_id: str,
    credential: Credential = Depends(get_current_credential),
    jobs: ReplyJobRegistry = Depends(get_job_registry),
):
    job = jobs.get(job_id, owner_id=credential.id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job
