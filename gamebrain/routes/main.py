import logging
from flask import Blueprint, render_template, jsonify, request, flash
from gamebrain import firestore_dao as dao
from gamebrain.gateway import GatewayError

logger = logging.getLogger(__name__)

bp = Blueprint('main', __name__)


@bp.route('/health')
def health():
    return jsonify({'status': 'ok'}), 200


@bp.route('/')
def index():
    if request.args.get('health') == '1':
        return 'OK', 200
    try:
        games = dao.get_games()
    except GatewayError:
        logger.exception('Could not list games')
        flash('Could not load games.', 'error')
        games = []
    return render_template('index.html', games=games)
