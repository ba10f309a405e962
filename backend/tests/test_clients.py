import asyncio
import json
from urllib.parse import parse_qs, urlparse
import httpx
import pytest
from backend.app.core.errors import ExternalServiceError
from backend.app.services.completion_engine import CompletionEngine
from backend.app.services.mailbox_gateway import MailboxGateway, thread_sender


def _gateway(handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MailboxGateway(http, api_server='https://mail.test/', client_id='cid', client_secret='secret', client_uri='http://localhost:3000')


def test_auth_url_contents():
    gw = _gateway(lambda request: httpx.Response(500))
    url = urlparse(gw.auth_url('owner@example.com', '/success'))
    assert url.netloc == 'mail.test'
    assert url.path == '/oauth/authorize'
    qs = parse_qs(url.query)
    assert qs['client_id'] == ['cid']
    assert qs['response_type'] == ['code']
    assert qs['scopes'] == ['email.modify']
    assert qs['login_hint'] == ['owner@example.com']
    assert qs['redirect_uri'] == ['http://localhost:3000/success']


def test_list_threads_sends_bearer_and_params():
    seen = {}

    def handler(request):
        seen['auth'] = request.headers['Authorization']
        seen['path'] = request.url.path
        seen['params'] = dict(request.url.params)
        return httpx.Response(200, json=[{'id': 't1'}])

    threads = asyncio.run(_gateway(handler).list_threads('at-1', limit=5))
    assert threads == [{'id': 't1'}]
    assert seen == {'auth': 'Bearer at-1', 'path': '/threads', 'params': {'limit': '5', 'view': 'expanded'}}


def test_exchange_code_posts_authorization_code():
    def handler(request):
        body = json.loads(request.content)
        assert request.method == 'POST'
        assert request.url.path == '/oauth/token'
        assert body['grant_type'] == 'authorization_code'
        assert body['code'] == 'abc'
        return httpx.Response(200, json={'access_token': 'at', 'account_id': 'acc', 'email_address': 'me@example.com'})

    grant = asyncio.run(_gateway(handler).exchange_code('abc'))
    assert (grant.access_token, grant.account_id, grant.email_address) == ('at', 'acc', 'me@example.com')


def test_http_error_becomes_external_service_error():
    gw = _gateway(lambda request: httpx.Response(403, text='forbidden'))
    with pytest.raises(ExternalServiceError) as exc:
        asyncio.run(gw.get_message('at', 'm1'))
    assert exc.value.service == 'mailbox'
    assert exc.value.status_code == 403


def test_transport_error_becomes_external_service_error():
    def handler(request):
        raise httpx.ConnectError('refused', request=request)

    with pytest.raises(ExternalServiceError):
        asyncio.run(_gateway(handler).list_threads('at'))


def test_download_file_returns_bytes():
    def handler(request):
        assert request.url.path == '/files/f1/download'
        return httpx.Response(200, content=b'\x00\x01binary')

    assert asyncio.run(_gateway(handler).download_file('at', 'f1')) == b'\x00\x01binary'


def test_thread_sender():
    assert thread_sender({'messages': [{'from': [{'email': 'x@y.z'}]}]}) == 'x@y.z'
    with pytest.raises(ValueError):
        thread_sender({'id': 't', 'messages': [{'from': []}]})


def _engine(handler, api_key='sk-test'):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CompletionEngine(http, api_key=api_key, base_url='https://llm.test/v1', model='m-1', max_tokens=400)


def test_completion_uses_fixed_parameters():
    seen = {}

    def handler(request):
        seen['url'] = str(request.url)
        seen['auth'] = request.headers['Authorization']
        seen['body'] = json.loads(request.content)
        return httpx.Response(200, json={'choices': [{'text': '\n\nDear Bob,'}]})

    text = asyncio.run(_engine(handler).complete('prompt text'))
    assert text == '\n\nDear Bob,'
    assert seen['url'] == 'https://llm.test/v1/completions'
    assert seen['auth'] == 'Bearer sk-test'
    assert seen['body'] == {
        'model': 'm-1', 'prompt': 'prompt text', 'max_tokens': 400,
        'top_p': 1, 'frequency_penalty': 0, 'presence_penalty': 0,
    }


def test_completion_missing_key():
    with pytest.raises(ExternalServiceError):
        asyncio.run(_engine(lambda r: httpx.Response(200, json={}), api_key='').complete('p'))


def test_completion_errors():
    with pytest.raises(ExternalServiceError) as exc:
        asyncio.run(_engine(lambda r: httpx.Response(429, text='slow down')).complete('p'))
    assert exc.value.status_code == 429
    with pytest.raises(ExternalServiceError):
        asyncio.run(_engine(lambda r: httpx.Response(200, json={'choices': []})).complete('p'))
