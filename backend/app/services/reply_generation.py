"""Draft replies for archived emails with the completion engine.

Every archived email of an account is processed independently; the outcome of
each one is reported item by item. The batch can run inline (the caller waits
for the report) or as a background job tracked in ReplyJobRegistry.
"""
import asyncio
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Optional
from ..models.credential_model import Credential
from ..models.email_model import EmailRecord
from ..schemas.reply import GenerationItem, GenerationReport, ReplyJobOut
from .completion_engine import CompletionEngine
from .credential_store import account_ref
from .email_archive import EmailArchive
from .reply_archive import ReplyArchive

log = logging.getLogger(__name__)


def build_prompt(subject: Optional[str], snippet: Optional[str]) -> str:
    return (
        f"Subject: {subject or ''}\n"
        f"Body: {snippet or ''}\n"
        "Please write a reply for the given email with subject and body separated"
    )


async def _generate_one(email: EmailRecord, owner_email: str, engine: CompletionEngine, replies: ReplyArchive) -> GenerationItem:
    extra = {"email_id": email.id}
    try:
        text = await engine.complete(build_prompt(email.subject, email.snippet))
        reply = await asyncio.to_thread(replies.create, owner_email, text, email.id)
    except Exception as e:
        log.warning("reply_generation_failed", exc_info=e, extra=extra)
        return GenerationItem(email_id=email.id, subject=email.subject, status='failed', error=str(e) or type(e).__name__)
    return GenerationItem(email_id=email.id, subject=email.subject, status='created', reply_id=reply.id)


async def generate_replies(credential: Credential, archive: EmailArchive, engine: CompletionEngine,
                           replies: ReplyArchive) -> GenerationReport:
    emails = await asyncio.to_thread(archive.list_for_owner, credential.email_address)
    items = await asyncio.gather(*(_generate_one(e, credential.email_address, engine, replies) for e in emails))
    created = sum(1 for i in items if i.status == 'created')
    report = GenerationReport(total=len(items), created=created, failed=len(items) - created, items=list(items))
    log.info(
        f"reply_generation_complete total={report.total} created={report.created} failed={report.failed}",
        extra={"account_id": account_ref(credential)},
    )
    return report


class ReplyJobRegistry:
    """In-process table of background reply-generation jobs.

    Finished jobs are kept for `ttl_seconds` and at most `max_jobs` entries are
    held; both limits are enforced whenever a new job is created. Pending and
    running jobs are never evicted.
    """

    def __init__(self, ttl_seconds: float = 3600, max_jobs: int = 500,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.ttl_seconds = ttl_seconds
        self.max_jobs = max_jobs
        self._clock = clock
        self._jobs: Dict[str, ReplyJobOut] = {}
        self._owners: Dict[str, str] = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._jobs)

    def _evict(self, job_id: str):
        self._jobs.pop(job_id, None)
        self._owners.pop(job_id, None)

    def _prune(self):
        # caller holds the lock
        now = self._clock()
        finished = sorted(
            (j for j in self._jobs.values() if j.finished_at is not None),
            key=lambda j: j.finished_at,
        )
        for job in finished:
            if (now - job.finished_at).total_seconds() >= self.ttl_seconds:
                self._evict(job.job_id)
        overflow = len(self._jobs) - self.max_jobs + 1
        for job in finished:
            if overflow <= 0:
                break
            if job.job_id in self._jobs:
                self._evict(job.job_id)
                overflow -= 1

    def create(self, owner_id: str) -> ReplyJobOut:
        job = ReplyJobOut(job_id=uuid.uuid4().hex, status='pending', created_at=self._clock())
        with self._lock:
            self._prune()
            self._jobs[job.job_id] = job
            self._owners[job.job_id] = owner_id
        return job

    def get(self, job_id: str, owner_id: Optional[str] = None) -> Optional[ReplyJobOut]:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or (owner_id is not None and self._owners.get(job_id) != owner_id):
                return None
            return job.model_copy()

    def _update(self, job_id: str, **changes):
        with self._lock:
            job = self._jobs.get(job_id)
            if job is not None:
                self._jobs[job_id] = job.model_copy(update=changes)

    async def run(self, job_id: str, work: Callable[[], Awaitable[GenerationReport]]):
        self._update(job_id, status='running')
        try:
            report = await work()
        except Exception as e:
            log.error("reply_job_failed", exc_info=e, extra={"job_id": job_id})
            self._update(job_id, status='failed', error=str(e) or type(e).__name__, finished_at=self._clock())
            return
        self._update(job_id, status='completed', report=report, finished_at=self._clock())
        log.info("reply_job_completed", extra={"job_id": job_id})
