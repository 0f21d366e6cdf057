import logging
import os
import threading

from flask import Flask

from screens.options import bp as options_bp
from screens.pokedex import bp as pokedex_bp
from services.pokedex import Pokedex


def create_app(pokedex=None):
    app = Flask(__name__)
    app.json.sort_keys = False
    if pokedex is not None:
        app.extensions['pokedex'] = pokedex
    container_lock = threading.Lock()

    app.register_blueprint(pokedex_bp)
    app.register_blueprint(options_bp)

    # Build the container (one HTTP session for every call) lazily, then
    # schedule the initial list load once, on the first incoming request
    @app.before_request
    def _schedule_initial_load():
        with container_lock:
            if 'pokedex' not in app.extensions:
                app.extensions['pokedex'] = Pokedex.create()
        app.extensions['pokedex'].start()

    return app


logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = create_app()


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port, debug=True)
