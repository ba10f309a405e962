import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List
from ..core.errors import IngestionError
from ..models.credential_model import Credential
from .credential_store import account_ref
from .email_archive import ArchiveWrite, EmailArchive
from .mailbox_gateway import MailboxGateway, thread_sender

log = logging.getLogger(__name__)

DEFAULT_THREAD_LIMIT = 5


@dataclass
class IngestResult:
    threads: List[Dict[str, Any]] = field(default_factory=list)
    created: int = 0
    duplicates: int = 0
    failed: int = 0


async def _archive_thread(thread: Dict[str, Any], credential: Credential, archive: EmailArchive) -> ArchiveWrite:
    sender = thread_sender(thread)
    # empty string rather than NULL so the unique constraint still applies
    return await asyncio.to_thread(
        archive.insert,
        account_ref(credential),
        credential.email_address,
        sender,
        thread.get('subject') or '',
        thread.get('snippet') or '',
    )


async def _settle(thread: Dict[str, Any], credential: Credential, archive: EmailArchive) -> str:
    """Attempt one insert; never raises so siblings always run to completion."""
    thread_id = thread.get('id') if isinstance(thread, dict) else None
    extra = {"account_id": account_ref(credential), "thread_id": thread_id}
    try:
        outcome = await _archive_thread(thread, credential, archive)
    except Exception:
        log.exception("ingest_thread_failed", extra=extra)
        return 'failed'
    if outcome is ArchiveWrite.CONFLICT:
        log.info("Email with the same subject and snippet already exists", extra=extra)
        return 'duplicate'
    return 'created'


async def ingest_latest_threads(credential: Credential, gateway: MailboxGateway, archive: EmailArchive,
                                limit: int = DEFAULT_THREAD_LIMIT) -> IngestResult:
    threads = await gateway.list_threads(credential.access_token, limit=limit, expanded=True)
    try:
        outcomes = await asyncio.gather(*(_settle(t, credential, archive) for t in threads))
    except Exception as e:
        log.error("ingest_batch_failed", exc_info=e, extra={"account_id": account_ref(credential)})
        raise IngestionError("ingestion batch did not settle") from e
    result = IngestResult(
        threads=threads,
        created=outcomes.count('created'),
        duplicates=outcomes.count('duplicate'),
        failed=outcomes.count('failed'),
    )
    log.info(
        f"ingest_complete fetched={len(threads)} created={result.created} duplicates={result.duplicates} failed={result.failed}",
        extra={"account_id": account_ref(credential)},
    )
    return result
