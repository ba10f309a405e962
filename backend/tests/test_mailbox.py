from fastapi.testclient import TestClient
from backend.app.main import app
from backend.app.core.clients import get_gateway
from conftest import FakeGateway, make_credential

client = TestClient(app)
AUTH = {'Authorization': 'tok1'}


def test_get_message_uses_account_token():
    make_credential()
    gateway = FakeGateway(messages={'m1': {'id': 'm1', 'subject': 'Hi', 'body': '<p>Hello</p>'}})
    app.dependency_overrides[get_gateway] = lambda: gateway
    r = client.get('/emails/message?id=m1', headers=AUTH)
    assert r.status_code == 200
    assert r.json()['subject'] == 'Hi'
    assert gateway.calls == [('get_message', 'access-1', 'm1')]


def test_get_message_requires_id():
    make_credential()
    app.dependency_overrides[get_gateway] = lambda: FakeGateway()
    assert client.get('/emails/message', headers=AUTH).status_code == 422


def test_missing_message_is_500():
    make_credential()
    app.dependency_overrides[get_gateway] = lambda: FakeGateway()
    r = client.get('/emails/message?id=nope', headers=AUTH)
    assert r.status_code == 500


def test_file_download_returns_raw_bytes():
    make_credential()
    gateway = FakeGateway(files={'f1': ('application/pdf', b'%PDF-1.4 fake')})
    app.dependency_overrides[get_gateway] = lambda: gateway
    r = client.get('/emails/file?id=f1', headers=AUTH)
    assert r.status_code == 200
    assert r.content == b'%PDF-1.4 fake'
    assert r.headers['content-type'].startswith('application/pdf')
