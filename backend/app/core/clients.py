"""Construction of external clients and the FastAPI dependencies that hand them out.

Clients are built once in the app lifespan and stored on ``app.state``; routes
never reach for module globals, and tests swap any of them through
``app.dependency_overrides``.
"""
import httpx
from fastapi import FastAPI, Request
from .config import Settings
from ..db.database import SessionLocal
from ..services.completion_engine import CompletionEngine
from ..services.credential_store import CredentialStore
from ..services.email_archive import EmailArchive
from ..services.mailbox_gateway import MailboxGateway
from ..services.reply_archive import ReplyArchive
from ..services.reply_generation import ReplyJobRegistry


def attach_clients(app: FastAPI, settings: Settings) -> httpx.AsyncClient:
    """Build every client from settings and attach them to app.state.

    Returns the shared HTTP client so the caller can close it on shutdown.
    """
    http = httpx.AsyncClient(timeout=settings.http_timeout)
    app.state.settings = settings
    app.state.gateway = MailboxGateway(
        http,
        api_server=settings.nylas_api_server,
        client_id=settings.nylas_client_id,
        client_secret=settings.nylas_client_secret,
        client_uri=settings.client_uri,
    )
    app.state.completion_engine = CompletionEngine(
        http,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base,
        model=settings.openai_model,
        max_tokens=settings.completion_max_tokens,
    )
    return http


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, 'settings', None) or Settings.from_env()


def get_gateway(request: Request) -> MailboxGateway:
    return request.app.state.gateway


def get_completion_engine(request: Request) -> CompletionEngine:
    return request.app.state.completion_engine


def get_job_registry(request: Request) -> ReplyJobRegistry:
    return request.app.state.reply_jobs


def get_credential_store() -> CredentialStore:
    return CredentialStore(SessionLocal)


def get_email_archive() -> EmailArchive:
    return EmailArchive(SessionLocal)


def get_reply_archive() -> ReplyArchive:
    return ReplyArchive(SessionLocal)
