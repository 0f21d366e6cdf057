import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Optional

from .core import MAX_WORKERS
from .errors import DetailFetchError, PokedexError
from .evolution import flatten
from .models import DetailRecord, StatInfo
from .text_utils import capitalize_first

logger = logging.getLogger(__name__)


class DetailCache:
    """In-memory cache of assembled detail records, keyed by entity id.

    Concurrent requests for the same id share one Future, so at most one
    remote fetch sequence runs per id. Records are kept for the life of the
    process; failures are never cached.
    """

    def __init__(self, gateway, executor: Optional[ThreadPoolExecutor] = None):
        self.gateway = gateway
        self._executor = executor or ThreadPoolExecutor(
            max_workers=MAX_WORKERS, thread_name_prefix='detail-fetch')
        # Guards both maps; the in-flight check-then-insert must be atomic
        self._lock = threading.Lock()
        self._cache: Dict[str, DetailRecord] = {}
        self._in_flight: Dict[str, Future] = {}

    def get_cached(self, poke_id: str) -> Optional[DetailRecord]:
        with self._lock:
            return self._cache.get(poke_id)

    def is_in_flight(self, poke_id: str) -> bool:
        with self._lock:
            return poke_id in self._in_flight

    def fetch_detail(self, poke_id: str) -> DetailRecord:
        """Blocking fetch. Raises DetailFetchError on failure."""
        return self.fetch_detail_async(poke_id).result()

    def fetch_detail_async(self, poke_id: str) -> 'Future[DetailRecord]':
        with self._lock:
            cached = self._cache.get(poke_id)
            if cached is not None:
                logger.debug('Detail cache hit for #%s', poke_id)
                done = Future()
                done.set_result(cached)
                return done
            pending = self._in_flight.get(poke_id)
            if pending is not None:
                logger.debug('Joining in-flight detail fetch for #%s', poke_id)
                return pending
            # Submitted under the lock: the worker cannot finish before it is registered
            pending = self._executor.submit(self._load, poke_id)
            self._in_flight[poke_id] = pending
            return pending

    def close(self):
        """Stop accepting work and drop fetches that have not started yet."""
        self._executor.shutdown(wait=False, cancel_futures=True)
        with self._lock:
            self._in_flight.clear()

    def _load(self, poke_id: str) -> DetailRecord:
        try:
            record = self._assemble(poke_id)
        except PokedexError as exc:
            self._forget(poke_id)
            logger.warning('Detail fetch failed for #%s: %s', poke_id, exc)
            raise DetailFetchError(poke_id, str(exc)) from exc
        except BaseException:
            self._forget(poke_id)
            raise
        with self._lock:
            # A record already in the cache is never replaced
            record = self._cache.setdefault(poke_id, record)
            self._in_flight.pop(poke_id, None)
        logger.debug('Cached detail for #%s (%s)', poke_id, record.name)
        return record

    def _forget(self, poke_id: str):
        with self._lock:
            self._in_flight.pop(poke_id, None)

    def _assemble(self, poke_id: str) -> DetailRecord:
        detail = self.gateway.fetch_entity_detail(poke_id)
        species = self.gateway.fetch_species_meta(poke_id)
        chain = self.gateway.fetch_evolution_chain(species.evolution_chain_ref)
        return DetailRecord(
            id=str(detail.id),
            name=detail.name,
            image_url=detail.artwork_url,
            tags=tuple(detail.types),
            height=detail.height,
            weight=detail.weight,
            metrics=tuple(StatInfo(capitalize_first(s.name), s.base_stat) for s in detail.stats),
            description=species.description,
            evolutions=tuple(flatten(chain)),
        )
