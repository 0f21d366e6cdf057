import threading
from unittest.mock import patch

import pytest

from app import create_app
from services.pokedex import Pokedex


@pytest.fixture
def pokedex(gateway):
    p = Pokedex(gateway)
    p.pager.page_size = 10
    yield p
    p.close()


@pytest.fixture
def client(pokedex):
    app = create_app(pokedex)
    app.config['TESTING'] = True
    return app.test_client()


def _settle(job):
    job.result(timeout=5).result(timeout=5)


def test_list_reports_entries_after_initial_load(client, pokedex) -> None:
    _settle(pokedex.start())

    resp = client.get('/api/pokemon')

    assert resp.status_code == 200
    body = resp.get_json()
    assert body['status'] == 'success'
    assert body['last_error'] == ''
    assert body['next_offset'] == 20
    assert len(body['entries']) == 20
    assert body['entries'][0] == {
        'id': '1',
        'name': 'mon-1',
        'image_url': 'https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/1.png',
        'tags': ['grass', 'poison'],
    }


def test_failed_scroll_keeps_entries_and_reports_last_error(client, pokedex, gateway) -> None:
    _settle(pokedex.start())
    gateway.list_failures = 1

    _settle(pokedex.load_more())
    body = client.get('/api/pokemon').get_json()

    assert body['status'] == 'success'
    assert len(body['entries']) == 20
    assert body['next_offset'] == 20
    assert 'connection refused' in body['last_error']


def test_first_request_schedules_initial_load(client, pokedex, gateway) -> None:
    client.get('/api/options')

    assert pokedex.start() is None
    assert gateway.list_started.wait(5)


def test_container_is_built_on_first_request() -> None:
    app = create_app()
    assert 'pokedex' not in app.extensions
    container = Pokedex.create()
    try:
        with patch('app.Pokedex.create', return_value=container) as create, \
             patch.object(container, 'start') as start:
            app.test_client().get('/api/options')
            app.test_client().get('/api/options')
    finally:
        container.close()

    create.assert_called_once_with()
    assert start.call_count == 2
    assert app.extensions['pokedex'] is container


def test_load_more_is_accepted(client, pokedex) -> None:
    _settle(pokedex.start())

    resp = client.post('/api/pokemon/more')

    assert resp.status_code == 202
    assert resp.get_json() == {'scheduled': True}


def test_load_more_while_a_page_is_pending_is_not_scheduled(client, gateway) -> None:
    gateway.list_gate = threading.Event()
    try:
        # The first request itself schedules the initial load
        resp = client.post('/api/pokemon/more')
    finally:
        gateway.list_gate.set()

    assert resp.status_code == 202
    assert resp.get_json() == {'scheduled': False}


def test_detail_goes_through_detail_state(client, gateway) -> None:
    # Keep the background list load from backfilling details
    gateway.list_failures = 2
    assert client.get('/api/pokemon/1/cached').status_code == 404

    resp = client.get('/api/pokemon/1?initial=1')
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['status'] == 'success'
    assert body['message'] == ''
    record = body['record']
    assert record['name'] == 'mon-1'
    assert [e['name'] for e in record['evolutions']] == ['bulbasaur', 'ivysaur', 'venusaur']
    assert record['metrics'][0] == {'name': 'Hp', 'value': 45}

    cached = client.get('/api/pokemon/1/cached')
    assert cached.status_code == 200
    assert cached.get_json() == record
    assert gateway.detail_calls['1'] == 1


def test_detail_failure_reports_error_state(client, gateway) -> None:
    gateway.list_failures = 2
    gateway.failing_details.add('13')

    resp = client.get('/api/pokemon/13?initial=1')

    assert resp.status_code == 502
    body = resp.get_json()
    assert body['status'] == 'error'
    assert '#13' in body['message']
    assert body['record'] is None


def test_detail_failure_keeps_previous_record(client, gateway) -> None:
    gateway.list_failures = 2
    client.get('/api/pokemon/1?initial=1')
    gateway.failing_details.add('13')

    resp = client.get('/api/pokemon/13')

    assert resp.status_code == 502
    body = resp.get_json()
    assert body['status'] == 'success'
    assert body['record']['id'] == '1'


def test_theme_toggle(client) -> None:
    assert client.get('/api/options').get_json() == {'dark_theme': False}
    assert client.post('/api/options/theme').get_json() == {'dark_theme': True}
    assert client.get('/api/options').get_json() == {'dark_theme': True}
