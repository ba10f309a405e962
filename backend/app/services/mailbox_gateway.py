"""Async client for the email-provider REST API (Nylas v2 style).

Only the calls this backend needs are wrapped: hosted-auth URL building, the
authorization-code exchange, thread listing, single message lookup, and file
metadata/download. Every failure surfaces as ExternalServiceError.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, List
from urllib.parse import urlencode
import httpx
from ..core.errors import ExternalServiceError

log = logging.getLogger(__name__)

SERVICE = 'mailbox'
SCOPE_EMAIL_MODIFY = 'email.modify'


@dataclass
class TokenGrant:
    access_token: str
    account_id: str | None
    email_address: str


def thread_sender(thread: Dict[str, Any]) -> str:
    """Email of the first participant on the first message of a thread."""
    try:
        return thread['messages'][0]['from'][0]['email']
    except (KeyError, IndexError, TypeError, AttributeError):
        thread_id = thread.get('id') if isinstance(thread, dict) else None
        raise ValueError(f"thread {thread_id!r} has no sender on its first message")


class MailboxGateway:
    def __init__(self, http: httpx.AsyncClient, api_server: str, client_id: str, client_secret: str, client_uri: str):
        self._http = http
        self.api_server = api_server.rstrip('/')
        self.client_id = client_id
        self.client_secret = client_secret
        self.client_uri = client_uri

    def auth_url(self, email_address: str, success_url: str = '') -> str:
        query = urlencode({
            'client_id': self.client_id,
            'response_type': 'code',
            'scopes': SCOPE_EMAIL_MODIFY,
            'login_hint': email_address,
            'redirect_uri': (self.client_uri or '') + (success_url or ''),
        })
        return f"{self.api_server}/oauth/authorize?{query}"

    async def exchange_code(self, code: str) -> TokenGrant:
        data = await self._request('POST', '/oauth/token', json={
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'grant_type': 'authorization_code',
            'code': code,
        })
        if not data.get('access_token') or not data.get('email_address'):
            raise ExternalServiceError(SERVICE, 'token exchange returned no access token')
        log.info("mailbox_token_exchanged", extra={"service": SERVICE})
        return TokenGrant(
            access_token=data['access_token'],
            account_id=data.get('account_id'),
            email_address=data['email_address'],
        )

    async def list_threads(self, access_token: str, limit: int = 5, expanded: bool = True) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {'limit': limit}
        if expanded:
            params['view'] = 'expanded'
        data = await self._request('GET', '/threads', access_token=access_token, params=params)
        if not isinstance(data, list):
            raise ExternalServiceError(SERVICE, 'thread listing did not return a list')
        return data

    async def get_message(self, access_token: str, message_id: str) -> Dict[str, Any]:
        return await self._request('GET', f'/messages/{message_id}', access_token=access_token)

    async def get_file(self, access_token: str, file_id: str) -> Dict[str, Any]:
        return await self._request('GET', f'/files/{file_id}', access_token=access_token)

    async def download_file(self, access_token: str, file_id: str) -> bytes:
        resp = await self._send('GET', f'/files/{file_id}/download', access_token=access_token)
        return resp.content

    async def _request(self, method: str, path: str, access_token: str | None = None, **kwargs) -> Any:
        resp = await self._send(method, path, access_token=access_token, **kwargs)
        try:
            return resp.json()
        except ValueError as e:
            raise ExternalServiceError(SERVICE, f'{method} {path} returned invalid JSON', resp.status_code) from e

    async def _send(self, method: str, path: str, access_token: str | None = None, **kwargs) -> httpx.Response:
        headers = {'Accept': 'application/json'}
        if access_token:
            headers['Authorization'] = f'Bearer {access_token}'
        try:
            resp = await self._http.request(method, f"{self.api_server}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            log.error("mailbox_request_failed", exc_info=e, extra={"service": SERVICE, "path": path})
            raise ExternalServiceError(SERVICE, f'{method} {path} failed: {type(e).__name__}') from e
        if resp.status_code >= 400:
            log.warning("mailbox_http_error", extra={"service": SERVICE, "path": path, "status": resp.status_code})
            raise ExternalServiceError(SERVICE, f'{method} {path} -> {resp.status_code}: {resp.text[:160]}', resp.status_code)
        return resp
