from dataclasses import dataclass, field, asdict
from typing import Optional, Tuple

LOADING = 'loading'
SUCCESS = 'success'
ERROR = 'error'


@dataclass(frozen=True)
class SummaryEntry:
    """One row of the browsable list. Tags stay empty until backfilled."""
    id: str
    name: str
    image_url: str
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StatInfo:
    name: str
    value: int


@dataclass(frozen=True)
class EvolutionNode:
    id: str
    name: str
    image_url: str


@dataclass(frozen=True)
class DetailRecord:
    """Fully assembled detail: entity data, English description and evolution line."""
    id: str
    name: str
    image_url: str
    tags: Tuple[str, ...]
    height: int
    weight: int
    metrics: Tuple[StatInfo, ...]
    description: str = ''
    evolutions: Tuple[EvolutionNode, ...] = ()

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ListState:
    status: str = LOADING
    entries: Tuple[SummaryEntry, ...] = ()
    message: str = ''

    @classmethod
    def loading(cls):
        return cls(LOADING)

    @classmethod
    def success(cls, entries):
        return cls(SUCCESS, tuple(entries))

    @classmethod
    def error(cls, message: str):
        return cls(ERROR, (), message)


@dataclass(frozen=True)
class DetailState:
    status: str = LOADING
    record: Optional[DetailRecord] = None
    message: str = ''

    @classmethod
    def loading(cls):
        return cls(LOADING)

    @classmethod
    def success(cls, record: DetailRecord):
        return cls(SUCCESS, record)

    @classmethod
    def error(cls, message: str):
        return cls(ERROR, None, message)


@dataclass
class PagerState:
    entries: list = field(default_factory=list)
    next_offset: int = 0
    fetch_in_flight: bool = False
