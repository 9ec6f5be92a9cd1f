import logging
from flask import Blueprint, render_template, abort, current_app
from gamebrain import firestore_dao as dao
from gamebrain.gateway import GatewayError
from gamebrain.history import request_history
from gamebrain.utils import format_date

logger = logging.getLogger(__name__)

bp = Blueprint('guides', __name__, url_prefix='/guide')


@bp.route('/<guide_id>')
def view_guide(guide_id):
    try:
        guide = dao.get_guide(guide_id)
        game = dao.get_game(guide.game_id) if guide and guide.game_id else None
    except GatewayError:
        logger.exception('Could not load guide %s', guide_id)
        return render_template('guide.html', guide=None, game=None), 503
    if not guide:
        abort(404)

    game_name = game.name if game else 'Game'
    history = request_history(current_app.config['HISTORY_MAX'])
    history.track(guide.id, guide.title, game_name, guide.author_name or 'Anonymous')

    return render_template('guide.html',
                           guide=guide,
                           game=game,
                           created_label=format_date(guide.created_at))
