class PokedexError(Exception):
    """Base class for errors raised by the data layer."""


class NetworkError(PokedexError):
    """Transport-level failure talking to PokeAPI (connection, timeout, HTTP status)."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Request to {url} failed: {reason}")
        self.url = url
        self.reason = reason


class DecodeError(PokedexError):
    """A response body was not JSON or did not have the expected shape."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Unexpected response from {url}: {reason}")
        self.url = url
        self.reason = reason


class DetailFetchError(PokedexError):
    """Assembling a detail record failed. The gateway error is kept as __cause__."""

    def __init__(self, poke_id: str, reason: str):
        super().__init__(f"Failed to load details for #{poke_id}: {reason}")
        self.poke_id = poke_id
        self.reason = reason
