"""
Supervisor for the in-process enrichment worker.

Owns the worker's asyncio task:
- ensure_running() is idempotent and cheap, so the ingestion orchestrator
  can call it after every cycle
- unexpected worker exits are restarted with exponential backoff
- the worker reports back only through ArticleCompleted notifications
"""

import asyncio
import time
from collections.abc import Callable

import structlog

from rss_tracker.enrichment.backoff import ExponentialBackoff
from rss_tracker.enrichment.config import EnrichmentConfig
from rss_tracker.enrichment.worker import ArticleCompleted, EnrichmentWorker
from rss_tracker.observability.metrics import get_metrics

logger = structlog.get_logger(__name__)


class EnrichmentSupervisor:
    """
    Keeps exactly one EnrichmentWorker loop alive.

    Usage:
        supervisor = EnrichmentSupervisor(worker)
        supervisor.subscribe(lambda event: print(event.title))
        supervisor.ensure_running()
        ...
        await supervisor.stop()
    """

    def __init__(
        self,
        worker: EnrichmentWorker,
        config: EnrichmentConfig | None = None,
        backoff: ExponentialBackoff | None = None,
    ):
        self._worker = worker
        self._config = config or EnrichmentConfig()
        self._backoff = backoff or ExponentialBackoff(
            base_delay=self._config.restart_base_delay,
            max_delay=self._config.restart_max_delay,
        )
        self._task: asyncio.Task | None = None
        self._stopping = False
        self._subscribers: list[Callable[[ArticleCompleted], None]] = []

        self.restarts = 0
        self.completed = 0
        self.last_error: str | None = None

        self._worker.set_completion_callback(self._handle_completed)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, callback: Callable[[ArticleCompleted], None]) -> None:
        """Register a listener for article-completed notifications."""
        self._subscribers.append(callback)

    def ensure_running(self) -> bool:
        """
        Start the worker task unless it is already alive.

        Returns:
            True if a new task was started
        """
        if self.is_running:
            return False

        self._stopping = False
        self._backoff.reset()
        self._task = asyncio.create_task(self._supervise(), name="enrichment-worker")
        logger.info("Enrichment worker started")
        return True

    async def stop(self) -> None:
        """Stop the worker loop and wait for in-flight summaries."""
        self._stopping = True
        await self._worker.stop()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        await self._worker.drain()
        logger.info("Enrichment supervisor stopped")

    async def wait(self) -> None:
        """Block until the supervised task ends (stop or give-up)."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._stopping:
                raise

    async def _supervise(self) -> None:
        metrics = get_metrics()

        while not self._stopping:
            started_at = time.monotonic()
            try:
                await self._worker.run_forever()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.last_error = str(e)
                # A run that stayed up longer than the max delay counts as healthy
                if time.monotonic() - started_at > self._backoff.max_delay:
                    self._backoff.reset()

                if self._backoff.exhausted(self._config.max_restarts):
                    logger.error(
                        "Enrichment worker exceeded max restarts, giving up",
                        restarts=self.restarts,
                        error=str(e),
                    )
                    return

                delay = self._backoff.next_delay()
                self.restarts += 1
                metrics.record_worker_restart()
                logger.warning(
                    "Enrichment worker crashed, restarting",
                    error=str(e),
                    attempt=self._backoff.attempt,
                    retry_delay=round(delay, 1),
                )
                await asyncio.sleep(delay)
            else:
                # run_forever only returns after stop()
                return

    def _handle_completed(self, event: ArticleCompleted) -> None:
        self.completed += 1
        logger.debug("Article enriched", article_id=event.article_id, title=event.title[:60])
        for callback in self._subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.error(
                    "Article-completed subscriber failed",
                    article_id=event.article_id,
                    error=str(e),
                )
