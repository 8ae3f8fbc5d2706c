"""Shared fixtures: settings, a mocked upstream session and an app client."""

from unittest.mock import MagicMock

import pytest
import requests
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from relay import StoryRelay

TEST_API_KEY = "AIza-test-key-for-unit-tests"


def make_response(status_code=200, json_data=None, text=""):
    """Build a stand-in for requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    return response


def story_payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def settings():
    return Settings(api_key=TEST_API_KEY)


@pytest.fixture
def upstream():
    """Mocked requests.Session used for the outbound call."""
    session = MagicMock(spec=requests.Session)
    session.post.return_value = make_response(json_data=story_payload("एक कहानी"))
    return session


@pytest.fixture
def relay(settings, upstream):
    return StoryRelay(settings, session=upstream)


@pytest.fixture
def client(settings, relay):
    return TestClient(create_app(settings, relay=relay))
