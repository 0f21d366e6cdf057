from dataclasses import asdict

from flask import Blueprint, jsonify, request, current_app

from services.errors import DetailFetchError

bp = Blueprint('pokedex', __name__, url_prefix='/api/pokemon')


def _pokedex():
    return current_app.extensions['pokedex']


def _log_debug(message: str, **fields):
    if fields:
        current_app.logger.debug(f"[Pokedex] {message} | {fields}")
    else:
        current_app.logger.debug(f"[Pokedex] {message}")


@bp.route('')
def list_entries():
    pokedex = _pokedex()
    state = pokedex.list_state.get()
    return jsonify({
        'status': state.status,
        'message': state.message,
        # A failed scroll keeps the list visible; the failure is reported here
        'last_error': str(pokedex.pager.last_error or ''),
        'next_offset': pokedex.pager.next_offset,
        'entries': [asdict(e) for e in state.entries],
    })


@bp.route('/more', methods=['POST'])
def load_more():
    scheduled = _pokedex().load_more() is not None
    _log_debug('Next page requested', scheduled=scheduled)
    return jsonify({'scheduled': scheduled}), 202


@bp.route('/<poke_id>')
def detail(poke_id):
    """Open the detail screen for ``poke_id``. ``?initial=1`` clears what was shown before."""
    pokedex = _pokedex()
    initial = request.args.get('initial') == '1'
    code = 200
    try:
        pokedex.load_detail(poke_id, initial_entry=initial).result()
    except DetailFetchError as e:
        _log_debug('Detail fetch failed', poke_id=poke_id, error=str(e))
        code = 502
    state = pokedex.detail_state.get()
    return jsonify({
        'status': state.status,
        'message': state.message,
        'record': state.record.to_dict() if state.record is not None else None,
    }), code


@bp.route('/<poke_id>/cached')
def cached_detail(poke_id):
    record = _pokedex().details.get_cached(poke_id)
    if record is None:
        return jsonify({'error': f'#{poke_id} is not cached'}), 404
    return jsonify(record.to_dict())
