import os
import tempfile

# must be set before backend.app.db.database is imported
_tmpdir = tempfile.mkdtemp(prefix="mailbox-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"

import pytest
from backend.app.db.database import Base, engine, init_db, SessionLocal
from backend.app.main import app
from backend.app.models.credential_model import Credential
from backend.app.core.errors import ExternalServiceError
from backend.app.services.reply_generation import ReplyJobRegistry


class FakeGateway:
    """Stands in for MailboxGateway; records every call it receives."""

    def __init__(self, threads=None, messages=None, files=None):
        self.threads = list(threads or [])
        self.messages = messages or {}
        self.files = files or {}
        self.calls = []
        self.fail_with = None

    def auth_url(self, email_address, success_url=''):
        self.calls.append(('auth_url', email_address, success_url))
        return f"https://mailbox.test/oauth/authorize?login_hint={email_address}&redirect_uri=http://localhost:3000{success_url}"

    async def exchange_code(self, code):
        from backend.app.services.mailbox_gateway import TokenGrant
        self.calls.append(('exchange_code', code))
        if code == 'bad-code':
            raise ExternalServiceError('mailbox', 'invalid grant', 400)
        return TokenGrant(access_token=f"access-{code}", account_id="acct-1", email_address="owner@example.com")

    async def list_threads(self, access_token, limit=5, expanded=True):
        self.calls.append(('list_threads', access_token, limit, expanded))
        if self.fail_with:
            raise self.fail_with
        return self.threads[:limit]

    async def get_message(self, access_token, message_id):
        self.calls.append(('get_message', access_token, message_id))
        if message_id not in self.messages:
            raise ExternalServiceError('mailbox', 'not found', 404)
        return self.messages[message_id]

    async def get_file(self, access_token, file_id):
        self.calls.append(('get_file', access_token, file_id))
        return {"id": file_id, "content_type": self.files[file_id][0]}

    async def download_file(self, access_token, file_id):
        self.calls.append(('download_file', access_token, file_id))
        return self.files[file_id][1]


class FakeCompletionEngine:
    def __init__(self, text="Draft reply", fail_on=None):
        self.text = text
        self.fail_on = set(fail_on or [])
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if any(marker in prompt for marker in self.fail_on):
            raise ExternalServiceError('completion', 'http_500: upstream exploded', 500)
        return self.text


def make_thread(thread_id, subject, snippet, sender="sender@example.com"):
    return {
        "id": thread_id,
        "subject": subject,
        "snippet": snippet,
        "messages": [{"id": f"m-{thread_id}", "from": [{"email": sender, "name": "Sender"}]}],
    }


def make_credential(token="tok1", email="a@x.com", account_id="A", access_token="access-1"):
    db = SessionLocal()
    try:
        db.add(Credential(id=token, email_address=email, account_id=account_id, access_token=access_token))
        db.commit()
    finally:
        db.close()
    return token


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    init_db()
    app.state.reply_jobs = ReplyJobRegistry()
    yield
    app.dependency_overrides.clear()
