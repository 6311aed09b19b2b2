"""
Tests for the Post Pipeline

Tests cover the per-job sequence (upload, then create), failure messages,
the one-outcome-per-job guarantee, FIFO ordering and single-flight
execution on the background worker.
"""

import sys
import os

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import FakeGateway
from data.models import PostFailure, PostJob, PostSuccess
from services.post_pipeline import PostPipeline
from utils.exceptions import ApiError, TransportError


def wait_for_outcome(pipeline, timeout=5.0):
    return pipeline.outcomes.get(timeout=timeout)


# =============================================================================
# PostJob Tests
# =============================================================================

class TestPostJob:
    """Tests for PostJob validation."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_text_rejected(self, text):
        """A job always carries non-blank text."""
        with pytest.raises(ValueError):
            PostJob(text=text)

    def test_image_optional(self):
        """Jobs default to no image."""
        assert PostJob(text="hi").image is None


# =============================================================================
# process() Tests
# =============================================================================

class TestProcess:
    """Tests for PostPipeline.process() run synchronously."""

    def test_text_only_success(self, fake_gateway):
        """Text-only jobs skip the upload."""
        outcome = PostPipeline(fake_gateway).process(PostJob(text="hello"))

        assert outcome == PostSuccess("1")
        assert fake_gateway.calls == [("create_post", "hello", None)]

    def test_image_uploaded_before_post(self, fake_gateway):
        """The media id from the upload is passed to create_post."""
        outcome = PostPipeline(fake_gateway).process(PostJob(text="pic", image=b"\x89PNG"))

        assert outcome == PostSuccess("1")
        assert fake_gateway.calls == [
            ("upload_media", b"\x89PNG"),
            ("create_post", "pic", "media-1"),
        ]

    def test_upload_failure_skips_post(self, fake_gateway):
        """A failed upload never publishes the text alone."""
        fake_gateway.upload_error = ApiError(401, "Unauthorized", context="media upload")

        outcome = PostPipeline(fake_gateway).process(PostJob(text="pic", image=b"img"))

        assert isinstance(outcome, PostFailure)
        assert outcome.message.startswith("image upload failed: ")
        assert "401" in outcome.message
        assert [c[0] for c in fake_gateway.calls] == ["upload_media"]

    def test_create_failure(self, fake_gateway):
        """A failed create is reported as a post failure."""
        fake_gateway.create_error = TransportError("create post: connection reset")

        outcome = PostPipeline(fake_gateway).process(PostJob(text="hello"))

        assert isinstance(outcome, PostFailure)
        assert outcome.message == "post failed: create post: connection reset"

    def test_failure_logged(self, fake_gateway, capture_logs):
        """Failures are logged at error level."""
        fake_gateway.create_error = TransportError("boom")

        PostPipeline(fake_gateway).process(PostJob(text="hello"))

        assert any(r.levelname == "ERROR" and "boom" in r.getMessage() for r in capture_logs)


# =============================================================================
# Worker Tests
# =============================================================================

class TestWorker:
    """Tests for the background worker."""

    def test_poll_outcome_empty(self, fake_gateway):
        """Polling an idle pipeline returns None without blocking."""
        assert PostPipeline(fake_gateway).poll_outcome() is None

    def test_one_outcome_per_job(self, fake_gateway):
        """Submitting a job yields exactly one outcome."""
        pipeline = PostPipeline(fake_gateway)
        pipeline.start()
        try:
            pipeline.submit(PostJob(text="hello"))
            assert wait_for_outcome(pipeline) == PostSuccess("1")
            pipeline.jobs.join()
            assert pipeline.poll_outcome() is None
        finally:
            pipeline.stop(timeout=5)

    def test_jobs_run_in_order_one_at_a_time(self):
        """Back-to-back jobs produce ordered outcomes and never overlap."""
        gateway = FakeGateway(delay=0.05)
        pipeline = PostPipeline(gateway)
        pipeline.start()
        try:
            pipeline.submit(PostJob(text="first"))
            pipeline.submit(PostJob(text="second", image=b"img"))

            assert wait_for_outcome(pipeline) == PostSuccess("1")
            assert wait_for_outcome(pipeline) == PostSuccess("2")
        finally:
            pipeline.stop(timeout=5)

        assert gateway.max_active == 1
        assert [c[0] for c in gateway.calls] == ["create_post", "upload_media", "create_post"]
        assert gateway.calls[0][1] == "first"
        assert gateway.calls[2][1] == "second"

    def test_failure_does_not_stop_worker(self, fake_gateway):
        """The worker keeps serving jobs after a failure."""
        fake_gateway.create_error = ApiError(500, "oops")
        pipeline = PostPipeline(fake_gateway)
        pipeline.start()
        try:
            pipeline.submit(PostJob(text="one"))
            assert isinstance(wait_for_outcome(pipeline), PostFailure)

            fake_gateway.create_error = None
            pipeline.submit(PostJob(text="two"))
            assert isinstance(wait_for_outcome(pipeline), PostSuccess)
        finally:
            pipeline.stop(timeout=5)

    def test_unexpected_exception_becomes_failure(self, fake_gateway):
        """Errors outside the xpost hierarchy still produce an outcome."""
        fake_gateway.create_error = RuntimeError("bug")
        pipeline = PostPipeline(fake_gateway)
        pipeline.start()
        try:
            pipeline.submit(PostJob(text="hello"))
            outcome = wait_for_outcome(pipeline)
        finally:
            pipeline.stop(timeout=5)

        assert outcome == PostFailure("unexpected error: bug")

    def test_start_and_stop(self, fake_gateway):
        """start() is idempotent and stop() ends the worker."""
        pipeline = PostPipeline(fake_gateway)
        pipeline.start()
        pipeline.start()
        assert pipeline.running

        pipeline.stop(timeout=5)
        assert not pipeline.running

    def test_stop_without_start(self, fake_gateway):
        """Stopping a pipeline that never started is a no-op."""
        pipeline = PostPipeline(fake_gateway)
        pipeline.stop(timeout=1)
        assert not pipeline.running

    def test_bounded_channels(self, fake_gateway):
        """Both channels are bounded by the configured capacity."""
        pipeline = PostPipeline(fake_gateway, capacity=3)
        assert pipeline.jobs.maxsize == 3
        assert pipeline.outcomes.maxsize == 3
