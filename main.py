import logging
import os
from gamebrain import create_app, socketio


def setup_logging(level='INFO'):
    """Attach a stream handler to the ``gamebrain`` logger tree."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger('gamebrain')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(numeric)
    return logger


app = create_app()
setup_logging(app.config.get('LOG_LEVEL', 'INFO'))

if __name__ == '__main__':
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() in ('true', '1')
    port = int(os.environ.get('PORT', 8080))
    socketio.run(app, host='0.0.0.0', port=port, debug=debug)
