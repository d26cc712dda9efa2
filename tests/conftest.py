import contextlib

import pytest

import mwsclient
from mwsclient import mws

ACCESS_KEY = 'AKIDEXAMPLE'
SECRET_KEY = 'secret'
SELLER_ID = 'A3SELLER'
MARKETPLACE_ID = 'A1F83G8C2ARO7P'

XML = {'Content-Type': 'text/xml'}


class FakeResponse(object):
    """Just enough of aiohttp.ClientResponse for make_request."""

    def __init__(self, body, status=200, headers=None, charset=None):
        if isinstance(body, str):
            body = body.encode('utf-8')
        self.body = body
        self.status = status
        self.headers = headers if headers is not None else dict(XML)
        self.charset = charset

    async def read(self):
        return self.body


class FakeTransport(object):
    """Replaces aiohttp.request, answering with queued responses in order."""

    def __init__(self):
        self.calls = []
        self.responses = []

    def add(self, body, status=200, headers=None, charset=None):
        self.responses.append(FakeResponse(body, status, headers, charset))

    def fail_with(self, exc):
        self.responses.append(exc)

    @contextlib.asynccontextmanager
    async def request(self, method, url, **kwargs):
        self.calls.append(dict(method=method, url=str(url), **kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        yield response

    @property
    def actions(self):
        return [call['url'].split('Action=')[1].split('&')[0] for call in self.calls]


@pytest.fixture()
def transport(monkeypatch):
    fake = FakeTransport()
    monkeypatch.setattr(mws.aiohttp, 'request', fake.request)
    return fake


@pytest.fixture()
def client():
    return mwsclient.MWSClient(ACCESS_KEY, SECRET_KEY, SELLER_ID, marketplace_id=MARKETPLACE_ID)


def response_document(operation, result):
    """Wrap ``result`` (an XML string) in the usual Response/Result envelope."""
    return (
        '<?xml version="1.0"?>'
        '<{op}Response xmlns="https://mws.amazonservices.com/Orders/2013-09-01">'
        '<{op}Result>{result}</{op}Result>'
        '<ResponseMetadata><RequestId>88faca76-b600-46d2-b53c-0c8c4533e43a</RequestId></ResponseMetadata>'
        '</{op}Response>'
    ).format(op=operation, result=result)
