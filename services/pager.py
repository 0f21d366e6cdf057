import logging
import threading
from concurrent.futures import CancelledError, wait
from dataclasses import replace
from typing import Optional, Tuple

from .core import BACKFILL_BATCH_SIZE, PAGE_SIZE
from .errors import DetailFetchError, PokedexError
from .models import ListState, PagerState, SummaryEntry
from .observable import Observable

logger = logging.getLogger(__name__)


class ListPager:
    """Growing, id-unique list of summary entries fed page by page from the gateway.

    Tags are filled in afterwards by ``backfill_tags`` using the detail cache.
    Every change is published on ``list_state``.
    """

    def __init__(self, gateway, details, page_size: int = PAGE_SIZE,
                 batch_size: int = BACKFILL_BATCH_SIZE):
        self.gateway = gateway
        self.details = details
        self.page_size = page_size
        self.batch_size = batch_size
        self.state = PagerState()
        self.list_state: Observable[ListState] = Observable(ListState.loading())
        self.last_error: Optional[PokedexError] = None
        self._lock = threading.Lock()

    @property
    def entries(self) -> Tuple[SummaryEntry, ...]:
        with self._lock:
            return tuple(self.state.entries)

    @property
    def next_offset(self) -> int:
        with self._lock:
            return self.state.next_offset

    def load_next_page(self) -> bool:
        """Fetch the next page and append it. Returns False if skipped or failed.

        A failure only replaces the list with an error state while nothing has
        been loaded yet; otherwise the current entries stay visible and the
        error is kept on ``last_error``.
        """
        with self._lock:
            if self.state.fetch_in_flight:
                logger.debug('Page fetch already in flight, skipping')
                return False
            self.state.fetch_in_flight = True
            offset = self.state.next_offset
        try:
            try:
                page = self.gateway.fetch_list_page(offset, self.page_size)
            except PokedexError as exc:
                with self._lock:
                    self.last_error = exc
                    first_load = not self.state.entries
                logger.warning('Page fetch failed offset=%s: %s', offset, exc)
                if first_load:
                    self.list_state.set(ListState.error(str(exc)))
                return False
            with self._lock:
                known = {e.id for e in self.state.entries}
                added = 0
                for item in page.items:
                    if item.id in known:
                        continue
                    known.add(item.id)
                    self.state.entries.append(
                        SummaryEntry(id=item.id, name=item.name, image_url=item.image_url))
                    added += 1
                self.state.next_offset = offset + self.page_size
                self.last_error = None
                snapshot = tuple(self.state.entries)
        finally:
            with self._lock:
                self.state.fetch_in_flight = False
        logger.info('Loaded page offset=%s added=%s total=%s', offset, added, len(snapshot))
        self.list_state.set(ListState.success(snapshot))
        return True

    def backfill_tags(self) -> int:
        """Fill empty tags from the detail cache, one published batch at a time.

        Entries whose detail fetch fails keep empty tags so the next pass retries
        them. Returns how many entries were tagged.
        """
        with self._lock:
            pending = [e.id for e in self.state.entries if not e.tags]
        if not pending:
            return 0
        tagged = 0
        for start in range(0, len(pending), self.batch_size):
            batch = pending[start:start + self.batch_size]
            futures = {pid: self.details.fetch_detail_async(pid) for pid in batch}
            wait(futures.values())
            found = {}
            for pid, fut in futures.items():
                try:
                    found[pid] = fut.result().tags
                except (DetailFetchError, CancelledError) as exc:
                    logger.debug('Backfill skipped #%s: %s', pid, exc or 'cancelled')
            with self._lock:
                entries = self.state.entries
                for i, e in enumerate(entries):
                    tags = found.get(e.id)
                    if tags and not e.tags:
                        entries[i] = replace(e, tags=tuple(tags))
                        tagged += 1
                snapshot = tuple(entries)
            logger.info('Backfilled batch %s-%s: %s/%s tagged',
                        start, start + len(batch), len(found), len(batch))
            self.list_state.set(ListState.success(snapshot))
        return tagged

    def initial_load(self):
        # Two pages so the first screen is full, then tags
        self.load_next_page()
        self.load_next_page()
        self.backfill_tags()

    def load_more(self) -> bool:
        """One page then one backfill pass. Returns whether the page was added."""
        loaded = self.load_next_page()
        self.backfill_tags()
        return loaded
