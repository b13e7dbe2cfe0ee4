# shared fixtures: a client whose http session is a mock, and a recorder for backoff sleeps
# nothing here opens a socket

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from breezometer.client import BreezometerClient

DATA_DIR = Path(__file__).parent / "data"


def make_response(status_code=200, body=None, text=None):
    # real requests.Response so .json(), .text and .content behave as in production
    resp = requests.Response()
    resp.status_code = status_code
    if text is None:
        text = "" if body is None else json.dumps(body)
    resp._content = text.encode("utf-8")
    resp.encoding = "utf-8"
    return resp

def load_fixture(name):
    return json.loads((DATA_DIR / name).read_text())


@pytest.fixture
def session():
    sess = MagicMock(spec=requests.Session)
    sess.get.return_value = make_response(200, {})
    return sess

@pytest.fixture
def sleeps(monkeypatch):
    calls = []
    monkeypatch.setattr("breezometer.client.time.sleep", calls.append)
    return calls

@pytest.fixture
def client(session, sleeps, monkeypatch):
    c = BreezometerClient(api_key="foo", retry_times=3)
    monkeypatch.setattr(c, "_session", lambda: session)
    return c

def sent_params(session, call=-1):
    # query parameters of one recorded GET
    return session.get.call_args_list[call].kwargs["params"]
