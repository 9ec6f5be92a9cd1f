import logging
from flask import Blueprint, render_template, redirect, url_for, flash, jsonify, current_app
from gamebrain.decorators import auth_required, get_current_user
from gamebrain import firestore_dao as dao
from gamebrain.dashboard import load_dashboard
from gamebrain.gateway import GatewayError
from gamebrain.history import request_history
from gamebrain.notifications import Toast

logger = logging.getLogger(__name__)

bp = Blueprint('dashboard', __name__, url_prefix='/dashboard')


def _history():
    return request_history(current_app.config['HISTORY_MAX'])


@bp.route('/')
@auth_required
def index():
    user = get_current_user()
    sections = load_dashboard(user.uid)
    history = _history()
    entries = [dict(entry, time_ago=history.time_ago(entry)) for entry in history.entries()]

    return render_template('dashboard.html',
                           user=user,
                           sections=sections,
                           history=entries)


@bp.route('/history/clear', methods=['POST'])
@auth_required
def clear_history():
    _history().clear()
    flash('History cleared.', 'info')
    return redirect(url_for('dashboard.index', tab='history'))


@bp.route('/favorites/<guide_id>/toggle', methods=['POST'])
def toggle_favorite(guide_id):
    user = get_current_user()
    toast_ms = current_app.config['TOAST_DURATION_MS']
    if not user.is_authenticated:
        return jsonify({
            'success': False,
            'toast': Toast('Sign in to add favorites.', 'warning', toast_ms).to_dict(),
        }), 401

    try:
        favorite = dao.toggle_favorite(user.uid, guide_id)
    except GatewayError:
        logger.exception('Could not toggle favorite %s for %s', guide_id, user.uid)
        return jsonify({
            'success': False,
            'toast': Toast('Could not update favorites.', 'error', toast_ms).to_dict(),
        }), 502

    message, kind = ('Added to favorites!', 'success') if favorite else ('Removed from favorites.', 'info')
    return jsonify({
        'success': True,
        'is_favorite': favorite,
        'toast': Toast(message, kind, toast_ms).to_dict(),
    })
