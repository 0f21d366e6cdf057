"""Typed PokeAPI gateway.

Four calls, each decoding the JSON body into small frozen records. Fields the
records do not name are ignored; a missing or mistyped field that is named raises
``DecodeError``. Transport problems (including non-2xx statuses) raise
``NetworkError``.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .core import (
    CONNECT_TIMEOUT,
    DESCRIPTION_LANG,
    HTTP_RETRIES,
    POKEAPI_BASE,
    REQUEST_TIMEOUT,
    sprite_url,
)
from .errors import DecodeError, NetworkError
from .text_utils import clean_flavor_text

logger = logging.getLogger(__name__)

USER_AGENT = 'pocketdex/1.0 (+https://example.local)'


def build_session(retries: int = HTTP_RETRIES) -> requests.Session:
    """Create the one HTTP session shared by every gateway call."""
    s = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.4,
        status_forcelist=[502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=20)
    s.mount('http://', adapter)
    s.mount('https://', adapter)
    s.headers['User-Agent'] = USER_AGENT
    return s


def id_from_url(url: str) -> str:
    """Last non-empty path segment of a PokeAPI resource URL ('.../pokemon/25/' -> '25')."""
    parts = [p for p in (url or '').strip('/').split('/') if p]
    return parts[-1] if parts else ''


@dataclass(frozen=True)
class ListItem:
    name: str
    ref_url: str

    @property
    def id(self) -> str:
        return id_from_url(self.ref_url)

    @property
    def image_url(self) -> str:
        return sprite_url(self.id)


@dataclass(frozen=True)
class ListPage:
    items: Tuple[ListItem, ...]


@dataclass(frozen=True)
class RawSprites:
    front_default: Optional[str] = None
    front_shiny: Optional[str] = None
    official_artwork: Optional[str] = None


@dataclass(frozen=True)
class RawStat:
    name: str
    base_stat: int


@dataclass(frozen=True)
class RawDetail:
    id: int
    name: str
    height: int
    weight: int
    types: Tuple[str, ...]
    stats: Tuple[RawStat, ...]
    sprites: RawSprites

    @property
    def artwork_url(self) -> str:
        # Prefer official artwork, then the default sprite, then the fixed template
        return (
            self.sprites.official_artwork
            or self.sprites.front_default
            or sprite_url(self.id)
        )


@dataclass(frozen=True)
class FlavorText:
    text: str
    language_code: str


@dataclass(frozen=True)
class RawSpecies:
    description_entries: Tuple[FlavorText, ...]
    evolution_chain_ref: str

    @property
    def description(self) -> str:
        """First English flavor text with line and page breaks flattened, or ''."""
        for e in self.description_entries:
            if e.language_code == DESCRIPTION_LANG:
                return clean_flavor_text(e.text)
        return ''


@dataclass(frozen=True)
class SpeciesRef:
    name: str
    url: str

    @property
    def id(self) -> str:
        return id_from_url(self.url)


@dataclass(frozen=True)
class RawChainNode:
    species_ref: SpeciesRef
    child_chains: Tuple['RawChainNode', ...] = ()


# --- decoding helpers ---

def _field(obj, key: str, kind, url: str):
    if not isinstance(obj, dict):
        raise DecodeError(url, f"expected an object containing '{key}'")
    value = obj.get(key)
    # bool is an int subclass; never accept it where a number is expected
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise DecodeError(url, f"'{key}' is missing or not {kind.__name__}")
    return value


def _optional_str(obj, key: str) -> Optional[str]:
    value = obj.get(key) if isinstance(obj, dict) else None
    return value if isinstance(value, str) and value else None


def decode_list_page(payload, url: str) -> ListPage:
    results = _field(payload, 'results', list, url)
    items = tuple(
        ListItem(name=_field(r, 'name', str, url), ref_url=_field(r, 'url', str, url))
        for r in results
    )
    return ListPage(items=items)


def decode_detail(payload, url: str) -> RawDetail:
    types = tuple(
        _field(_field(slot, 'type', dict, url), 'name', str, url)
        for slot in _field(payload, 'types', list, url)
    )
    stats = tuple(
        RawStat(
            name=_field(_field(slot, 'stat', dict, url), 'name', str, url),
            base_stat=_field(slot, 'base_stat', int, url),
        )
        for slot in _field(payload, 'stats', list, url)
    )
    sprites_json = _field(payload, 'sprites', dict, url)
    other = sprites_json.get('other') or {}
    sprites = RawSprites(
        front_default=_optional_str(sprites_json, 'front_default'),
        front_shiny=_optional_str(sprites_json, 'front_shiny'),
        official_artwork=_optional_str(other.get('official-artwork') if isinstance(other, dict) else None,
                                       'front_default'),
    )
    return RawDetail(
        id=_field(payload, 'id', int, url),
        name=_field(payload, 'name', str, url),
        height=_field(payload, 'height', int, url),
        weight=_field(payload, 'weight', int, url),
        types=types,
        stats=stats,
        sprites=sprites,
    )


def decode_species(payload, url: str) -> RawSpecies:
    entries = tuple(
        FlavorText(
            text=_field(e, 'flavor_text', str, url),
            language_code=_field(_field(e, 'language', dict, url), 'name', str, url),
        )
        for e in _field(payload, 'flavor_text_entries', list, url)
    )
    chain_ref = _field(_field(payload, 'evolution_chain', dict, url), 'url', str, url)
    return RawSpecies(description_entries=entries, evolution_chain_ref=chain_ref)


def decode_chain_node(node, url: str) -> RawChainNode:
    """Recursive-descent decode of one ``chain`` link and everything it evolves to."""
    species = _field(node, 'species', dict, url)
    ref = SpeciesRef(name=_field(species, 'name', str, url), url=_field(species, 'url', str, url))
    children = tuple(decode_chain_node(c, url) for c in _field(node, 'evolves_to', list, url))
    return RawChainNode(species_ref=ref, child_chains=children)


class PokeApiClient:
    """Gateway over the four PokeAPI resources the app reads."""

    def __init__(self, session: requests.Session, base: str = POKEAPI_BASE,
                 timeout=(CONNECT_TIMEOUT, REQUEST_TIMEOUT)):
        self.session = session
        self.base = base.rstrip('/')
        self.timeout = timeout

    def _get_json(self, url: str, params=None):
        logger.debug('GET %s params=%s', url, params)
        try:
            r = self.session.get(url, params=params, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as exc:
            logger.warning('PokeAPI request failed url=%s: %s', url, exc)
            raise NetworkError(url, str(exc)) from exc
        try:
            return r.json()
        except ValueError as exc:
            logger.warning('PokeAPI returned non-JSON body url=%s', url)
            raise DecodeError(url, 'body is not valid JSON') from exc

    def fetch_list_page(self, offset: int, limit: int) -> ListPage:
        url = f"{self.base}/pokemon"
        payload = self._get_json(url, params={'limit': limit, 'offset': offset})
        return decode_list_page(payload, url)

    def fetch_entity_detail(self, poke_id: str) -> RawDetail:
        url = f"{self.base}/pokemon/{poke_id}"
        return decode_detail(self._get_json(url), url)

    def fetch_species_meta(self, poke_id: str) -> RawSpecies:
        url = f"{self.base}/pokemon-species/{poke_id}"
        return decode_species(self._get_json(url), url)

    def fetch_evolution_chain(self, url: str) -> RawChainNode:
        payload = self._get_json(url)
        return decode_chain_node(_field(payload, 'chain', dict, url), url)
