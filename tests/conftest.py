"""
Shared Test Fixtures for xpost

This module provides common fixtures used across all test modules.
Fixtures include credentials, HTTP response mocks, fake collaborators for
the posting pipeline and the session state machine, and log capture.
"""

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock, patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.models import Credentials, Draft, Post, PublicMetrics, UserProfile
from utils.exceptions import DraftStorageError, ImageError


# =============================================================================
# Credential Fixtures
# =============================================================================

@pytest.fixture
def credentials():
    """Obvious test credentials, never real secrets."""
    return Credentials(
        consumer_key="test-consumer-key",
        consumer_secret="test-consumer-secret",
        access_token="test-access-token",
        access_token_secret="test-access-secret",
    )


@pytest.fixture
def twitter_doc_credentials():
    """Credentials from the X developer documentation's signing walkthrough."""
    return Credentials(
        consumer_key="xvz1evFS4wEEPTGEFPHBog",
        consumer_secret="kAcSOqF21Fu85e7zjz7ZN2U4ZRhfV3WpwPAoE3Z7kBw",
        access_token="370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb",
        access_token_secret="LswwdoUaIvS8ltyTt5jkRh4J50vUPVVHtR2YPi5kE",
    )


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def capture_logs():
    """
    Capture log records emitted under the application's root logger.

    Returns:
        list: A list that will contain captured log records.
    """
    class LogCapture(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    app_logger = logging.getLogger("xpost")
    original_level = app_logger.level
    app_logger.setLevel(logging.DEBUG)
    app_logger.addHandler(handler)

    yield handler.records

    app_logger.removeHandler(handler)
    app_logger.setLevel(original_level)


# =============================================================================
# HTTP Response Fixtures
# =============================================================================

@pytest.fixture
def mock_http_response():
    """
    Factory fixture for creating mock HTTP responses.

    Usage:
        def test_http_request(mock_http_response):
            response = mock_http_response(status_code=200, json_data={'key': 'value'})

    Returns:
        callable: A factory function for creating mock responses.
    """
    def _create_response(
        status_code: int = 200,
        text: str = '',
        json_data: Optional[Any] = None,
    ) -> MagicMock:
        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.ok = 200 <= status_code < 300

        if text:
            mock_response.text = text
        elif json_data is not None:
            mock_response.text = json.dumps(json_data)
        else:
            mock_response.text = ''

        if json_data is not None:
            mock_response.json.return_value = json_data
        else:
            mock_response.json.side_effect = ValueError("No JSON object could be decoded")

        return mock_response

    return _create_response


@pytest.fixture
def mock_requests(mock_http_response):
    """
    Patch ``requests.get`` and ``requests.post``.

    Usage:
        def test_api_call(mock_requests):
            mock_requests.post.return_value = mock_requests.response(json_data={...})

    Returns:
        MagicMock: Holder with ``get``, ``post`` and the ``response`` factory.
    """
    with patch('requests.get') as mock_get, patch('requests.post') as mock_post:
        mock_req = MagicMock()
        mock_req.get = mock_get
        mock_req.post = mock_post
        mock_req.response = mock_http_response
        yield mock_req


# =============================================================================
# Fake Collaborators
# =============================================================================

class FakeGateway:
    """
    In-memory PostGateway / StatsGateway.

    Records every call and the maximum number of calls that were running at
    the same time, so tests can assert single-flight behaviour.
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: List[tuple] = []
        self.upload_error: Optional[Exception] = None
        self.create_error: Optional[Exception] = None
        self.media_id = "media-1"
        self.next_post_id = 1
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()
        self.user = UserProfile(id="123", username="testuser")
        self.posts: List[Post] = []
        self.replies: Dict[str, List[Post]] = {}
        self.read_error: Optional[Exception] = None

    def _enter(self, call):
        with self._lock:
            self.calls.append(call)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        if self.delay:
            threading.Event().wait(self.delay)

    def _exit(self):
        with self._lock:
            self.active -= 1

    def upload_media(self, image_data: bytes) -> str:
        self._enter(("upload_media", image_data))
        try:
            if self.upload_error:
                raise self.upload_error
            return self.media_id
        finally:
            self._exit()

    def create_post(self, text: str, media_id: Optional[str] = None) -> str:
        self._enter(("create_post", text, media_id))
        try:
            if self.create_error:
                raise self.create_error
            post_id = str(self.next_post_id)
            self.next_post_id += 1
            return post_id
        finally:
            self._exit()

    def get_current_user(self) -> UserProfile:
        self.calls.append(("get_current_user",))
        if self.read_error:
            raise self.read_error
        return self.user

    def get_user_posts(self, user_id: str, max_results: int = 10) -> List[Post]:
        self.calls.append(("get_user_posts", user_id, max_results))
        if self.read_error:
            raise self.read_error
        return self.posts

    def get_post_replies(self, post_id: str, max_results: int = 10) -> List[Post]:
        self.calls.append(("get_post_replies", post_id, max_results))
        if self.read_error:
            raise self.read_error
        return self.replies.get(post_id, [])


class FakeImages:
    """ImageSource returning canned bytes or raising ImageError."""

    def __init__(self, clipboard: Optional[bytes] = b"\x89PNG-clipboard",
                 files: Optional[Dict[str, bytes]] = None):
        self.clipboard = clipboard
        self.files = files or {}
        self.requested_paths: List[str] = []

    def from_clipboard(self) -> bytes:
        if self.clipboard is None:
            raise ImageError("No image in clipboard")
        return self.clipboard

    def from_file(self, path: str) -> bytes:
        self.requested_paths.append(path)
        if path not in self.files:
            raise ImageError(f"File not found: {path}")
        return self.files[path]


class InMemoryDrafts:
    """DraftStorage kept in a dict; can be told to fail."""

    def __init__(self, drafts: Optional[List[Draft]] = None):
        self.drafts: Dict[str, Draft] = {d.id: d for d in (drafts or [])}
        self.fail = False
        self.saved: List[str] = []
        self.deleted: List[str] = []

    def save(self, draft: Draft) -> None:
        if self.fail:
            raise DraftStorageError("disk full")
        self.drafts[draft.id] = Draft(draft.id, draft.content, draft.created_at, draft.updated_at)
        self.saved.append(draft.id)

    def load_all(self) -> List[Draft]:
        if self.fail:
            raise DraftStorageError("permission denied")
        return sorted(
            (Draft(d.id, d.content, d.created_at, d.updated_at) for d in self.drafts.values()),
            key=lambda d: d.updated_at, reverse=True,
        )

    def delete(self, draft_id: str) -> None:
        if self.fail:
            raise DraftStorageError("permission denied")
        self.drafts.pop(draft_id, None)
        self.deleted.append(draft_id)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def fake_images():
    return FakeImages(files={"/tmp/photo.jpg": b"\x89PNG-file"})


@pytest.fixture
def in_memory_drafts():
    return InMemoryDrafts()


# =============================================================================
# Data Model Factories
# =============================================================================

@pytest.fixture
def draft_factory():
    """
    Factory fixture for creating Draft objects with a given update time.

    Usage:
        draft = draft_factory("text", minute=5)
    """
    def _create_draft(content: str = "Draft text", minute: int = 0, draft_id: Optional[str] = None) -> Draft:
        ts = datetime(2024, 1, 1, 12, minute, tzinfo=timezone.utc)
        return Draft(
            id=draft_id or str(int(ts.timestamp() * 1000)),
            content=content,
            created_at=ts,
            updated_at=ts,
        )

    return _create_draft


@pytest.fixture
def post_factory():
    """Factory fixture for creating Post objects."""
    def _create_post(post_id: str = "1", text: str = "Test post", likes: int = 0) -> Post:
        return Post(
            id=post_id,
            text=text,
            created_at="2024-01-01T12:00:00.000Z",
            public_metrics=PublicMetrics(like_count=likes),
        )

    return _create_post
