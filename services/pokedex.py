"""Application container and view state for the list and detail screens.

Owns the single HTTP session, the gateway, the detail cache and the pager, and
publishes the detail screen's state. Page fetches and backfill passes each get
their own single background worker: pages never overlap each other, backfill
passes never overlap each other, but a page fetch can run while a backfill
pass is still working through its batches.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .details import DetailCache
from .models import DetailState, LOADING
from .observable import Observable
from .options import Options
from .pager import ListPager
from .pokeapi import PokeApiClient, build_session

logger = logging.getLogger(__name__)


class Pokedex:

    def __init__(self, gateway, details: Optional[DetailCache] = None,
                 pager: Optional[ListPager] = None, options: Optional[Options] = None):
        self.gateway = gateway
        self.details = details or DetailCache(gateway)
        self.pager = pager or ListPager(gateway, self.details)
        self.options = options or Options()
        self.detail_state: Observable[DetailState] = Observable(DetailState.loading())
        self._page_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='pokedex-page')
        self._backfill_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='pokedex-backfill')
        self._lock = threading.Lock()
        self._started = False
        self._page_job: Optional[Future] = None
        self._backfill_job: Optional[Future] = None
        # Reentrant: subscribers may open another entity while being notified
        self._detail_lock = threading.RLock()
        self._detail_id: Optional[str] = None

    @classmethod
    def create(cls, session=None) -> 'Pokedex':
        """Wire the default object graph around one shared session."""
        return cls(PokeApiClient(session or build_session()))

    @property
    def list_state(self):
        return self.pager.list_state

    def start(self) -> Optional[Future]:
        """Schedule the initial load (two pages, then tags). Only the first call does anything.

        The returned Future resolves to the Future of the backfill pass queued
        after the pages.
        """
        with self._lock:
            if self._started:
                return None
            self._started = True
            logger.info('Scheduling initial list load')
            return self._schedule_pages(2)

    def load_more(self) -> Optional[Future]:
        """Schedule one more page and a backfill pass.

        Returns None without doing anything while a page load is pending or
        running, the same way ``ListPager.load_next_page`` ignores a call made
        while a fetch is in flight.
        """
        with self._lock:
            return self._schedule_pages(1)

    def load_detail(self, poke_id: str, initial_entry: bool = False) -> Future:
        """Publish the detail for ``poke_id`` on ``detail_state``.

        ``initial_entry`` means the user just opened this entity, so any record
        still shown from before is replaced by the loading state first. A
        failure only shows an error while nothing else is on screen.
        """
        with self._detail_lock:
            self._detail_id = poke_id
            if initial_entry:
                self.detail_state.set(DetailState.loading())
            cached = self.details.get_cached(poke_id)
            if cached is not None:
                self.detail_state.set(DetailState.success(cached))
                done = Future()
                done.set_result(cached)
                return done
        # Resolved only after detail_state has been updated
        published = Future()

        def on_done(fut):
            self._on_detail_done(poke_id, fut)
            if fut.cancelled():
                published.cancel()
            elif fut.exception() is not None:
                published.set_exception(fut.exception())
            else:
                published.set_result(fut.result())

        self.details.fetch_detail_async(poke_id).add_done_callback(on_done)
        return published

    def close(self):
        self._page_executor.shutdown(wait=False, cancel_futures=True)
        self._backfill_executor.shutdown(wait=False, cancel_futures=True)
        self.details.close()

    def _on_detail_done(self, poke_id: str, fut: Future):
        if fut.cancelled():
            return
        exc = fut.exception()
        # Check and publish together so a newer load_detail cannot slip in between
        with self._detail_lock:
            if poke_id != self._detail_id:
                # The user has moved on to another entity
                return
            if exc is None:
                self.detail_state.set(DetailState.success(fut.result()))
            elif self.detail_state.get().status == LOADING:
                self.detail_state.set(DetailState.error(str(exc) or 'Failed to load details'))

    def _schedule_pages(self, count: int) -> Optional[Future]:
        # Caller holds self._lock
        if self._page_job is not None and not self._page_job.done():
            logger.debug('Page load already pending, skipping')
            return None
        job = self._page_executor.submit(self._load_pages, count)
        job.add_done_callback(_log_failure)
        self._page_job = job
        return job

    def _load_pages(self, count: int) -> Future:
        for _ in range(count):
            self.pager.load_next_page()
        return self._schedule_backfill()

    def _schedule_backfill(self) -> Future:
        with self._lock:
            job = self._backfill_job
            if job is not None and not job.done() and not job.running():
                # A queued pass has not collected its entries yet; it will see the new page
                return job
            job = self._backfill_executor.submit(self.pager.backfill_tags)
            job.add_done_callback(_log_failure)
            self._backfill_job = job
            return job


def _log_failure(fut: Future):
    if not fut.cancelled() and fut.exception() is not None:
        logger.error('Background list job failed', exc_info=fut.exception())
