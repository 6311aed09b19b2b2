"""
Post Pipeline Module

A single background worker that publishes PostJobs one at a time. The UI
talks to it only through two bounded FIFO queues: jobs in, outcomes out.
Exactly one outcome is produced per job and jobs never overlap.
"""

import queue
import threading
from typing import Optional

from config import settings
from data.models import PostFailure, PostJob, PostOutcome, PostSuccess
from services.protocols import PostGateway
from utils.exceptions import XPostError
from utils.logger import get_logger

logger = get_logger(__name__)

_STOP = object()


class PostPipeline:
    """Sequential post worker with bounded job and outcome channels."""

    def __init__(self, gateway: PostGateway, capacity: int = settings.POST_QUEUE_CAPACITY):
        self.gateway = gateway
        self.jobs: "queue.Queue" = queue.Queue(maxsize=capacity)
        self.outcomes: "queue.Queue[PostOutcome]" = queue.Queue(maxsize=capacity)
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread. Calling it twice is a no-op."""
        if self.running:
            return
        self._thread = threading.Thread(target=self._run, name="post-pipeline", daemon=True)
        self._thread.start()
        logger.info("Post pipeline started")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Ask the worker to exit after the job it is working on.

        An in-flight post is not cancelled; a daemon worker still blocked on
        the network when the timeout expires is abandoned at interpreter exit.
        """
        if not self.running:
            return
        self.jobs.put(_STOP)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Post pipeline still busy at shutdown; abandoning in-flight post")
        else:
            logger.info("Post pipeline stopped")

    def submit(self, job: PostJob) -> None:
        """Queue a job. Blocks while the job channel is full."""
        logger.debug(f"Submitting post job ({len(job.text)} chars, image={job.image is not None})")
        self.jobs.put(job)

    def poll_outcome(self) -> Optional[PostOutcome]:
        """Return the next outcome if one is ready, without waiting."""
        try:
            return self.outcomes.get_nowait()
        except queue.Empty:
            return None

    def process(self, job: PostJob) -> PostOutcome:
        """
        Publish one job: optional image upload, then post creation.

        The text is never posted if its image failed to upload.

        Args:
            job: The job to publish.

        Returns:
            PostOutcome: PostSuccess with the remote id, or PostFailure.
        """
        media_id = None
        if job.image is not None:
            try:
                media_id = self.gateway.upload_media(job.image)
            except XPostError as e:
                logger.error(f"Image upload failed: {e}")
                return PostFailure(f"image upload failed: {e}")

        try:
            remote_id = self.gateway.create_post(job.text, media_id)
        except XPostError as e:
            logger.error(f"Post failed: {e}")
            return PostFailure(f"post failed: {e}")

        return PostSuccess(remote_id)

    def _run(self) -> None:
        while True:
            job = self.jobs.get()
            try:
                if job is _STOP:
                    return
                try:
                    outcome = self.process(job)
                except Exception as e:
                    logger.error(f"Unexpected error while posting: {e}", exc_info=True)
                    outcome = PostFailure(f"unexpected error: {e}")
                self.outcomes.put(outcome)
            finally:
                self.jobs.task_done()
