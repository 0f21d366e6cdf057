from flask import Blueprint, jsonify, current_app

bp = Blueprint('options', __name__, url_prefix='/api/options')


@bp.route('')
def get_options():
    return jsonify(current_app.extensions['pokedex'].options.to_dict())


@bp.route('/theme', methods=['POST'])
def toggle_theme():
    options = current_app.extensions['pokedex'].options
    options.toggle_theme()
    return jsonify(options.to_dict())
