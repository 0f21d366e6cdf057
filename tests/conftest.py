import threading
from collections import Counter

import pytest

from services.errors import NetworkError
from services.pokeapi import (
    FlavorText,
    ListItem,
    ListPage,
    RawChainNode,
    RawDetail,
    RawSpecies,
    RawSprites,
    RawStat,
    SpeciesRef,
)

API = 'https://pokeapi.co/api/v2'


def species_ref(poke_id: int, name: str) -> SpeciesRef:
    return SpeciesRef(name=name, url=f'{API}/pokemon-species/{poke_id}/')


class FakeGateway:
    """In-memory stand-in for PokeApiClient that counts calls.

    ``detail_gate``/``list_gate`` hold the matching calls until set, which keeps
    a request in flight for as long as a test needs.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self.list_calls = []
        self.detail_calls = Counter()
        self.species_calls = Counter()
        self.chain_calls = Counter()
        self.failing_details = set()
        self.failing_species = set()
        self.list_failures = 0
        self.detail_gate = None
        self.list_gate = None
        self.list_started = threading.Event()
        self.detail_started = threading.Event()

    def fetch_list_page(self, offset, limit):
        with self.lock:
            self.list_calls.append((offset, limit))
            fail = self.list_failures > 0
            if fail:
                self.list_failures -= 1
        self.list_started.set()
        if self.list_gate is not None:
            self.list_gate.wait(5)
        if fail:
            raise NetworkError(f'{API}/pokemon', 'connection refused')
        items = tuple(
            ListItem(name=f'mon-{i}', ref_url=f'{API}/pokemon/{i}/')
            for i in range(offset + 1, offset + limit + 1)
        )
        return ListPage(items=items)

    def fetch_entity_detail(self, poke_id):
        with self.lock:
            self.detail_calls[poke_id] += 1
            fail = poke_id in self.failing_details
        self.detail_started.set()
        if self.detail_gate is not None:
            self.detail_gate.wait(5)
        if fail:
            raise NetworkError(f'{API}/pokemon/{poke_id}', 'read timed out')
        return RawDetail(
            id=int(poke_id),
            name=f'mon-{poke_id}',
            height=7,
            weight=69,
            types=('grass', 'poison'),
            stats=(RawStat('hp', 45), RawStat('special-attack', 65)),
            sprites=RawSprites(official_artwork=f'https://img.example/{poke_id}.png'),
        )

    def fetch_species_meta(self, poke_id):
        with self.lock:
            self.species_calls[poke_id] += 1
            fail = poke_id in self.failing_species
        if fail:
            raise NetworkError(f'{API}/pokemon-species/{poke_id}', 'connection reset')
        return RawSpecies(
            description_entries=(
                FlavorText('Une graine etrange.', 'fr'),
                FlavorText('A strange seed was\nplanted on its\fback at birth.', 'en'),
            ),
            evolution_chain_ref=f'{API}/evolution-chain/1/',
        )

    def fetch_evolution_chain(self, url):
        with self.lock:
            self.chain_calls[url] += 1
        return RawChainNode(species_ref(1, 'bulbasaur'), (
            RawChainNode(species_ref(2, 'ivysaur'), (
                RawChainNode(species_ref(3, 'venusaur')),
            )),
        ))


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()
