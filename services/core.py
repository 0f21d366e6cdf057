import os

# Constants
POKEAPI_BASE = os.environ.get('POKEAPI_BASE') or 'https://pokeapi.co/api/v2'
SPRITE_URL_TEMPLATE = 'https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/{id}.png'
DESCRIPTION_LANG = 'en'

# Transport settings (connect, read) seconds
CONNECT_TIMEOUT = 5
REQUEST_TIMEOUT = int(os.environ.get('POKEAPI_TIMEOUT', 12))
HTTP_RETRIES = int(os.environ.get('POKEAPI_RETRIES', 2))

# List paging and backfill
PAGE_SIZE = int(os.environ.get('POKEDEX_PAGE_SIZE', 60))
BACKFILL_BATCH_SIZE = int(os.environ.get('POKEDEX_BACKFILL_BATCH', 20))

# Detail fetch pool (bounded to be polite to PokeAPI)
MAX_WORKERS = int(os.environ.get('POKEDEX_MAX_WORKERS', 8))


def sprite_url(poke_id) -> str:
    return SPRITE_URL_TEMPLATE.format(id=poke_id)
