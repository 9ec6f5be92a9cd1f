from flask import Blueprint, render_template, redirect, url_for, request

bp = Blueprint('games', __name__)


@bp.route('/game')
def view_game():
    game_id = request.args.get('id', '').strip()
    if not game_id:
        return redirect(url_for('main.index'))

    return render_template('game.html', game_id=game_id)
