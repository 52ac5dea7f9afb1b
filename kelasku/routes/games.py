from flask import Blueprint, render_template, redirect, url_for, flash, current_app, abort
from flask_login import login_required

from kelasku.decorators import capability_required
from kelasku.extensions import store
from kelasku.forms import GameForm, first_error
from kelasku.services import records
from kelasku.services.live import LiveView
from kelasku.store import StoreError
from kelasku.utils.capabilities import Capability
from kelasku.utils.security import is_valid_game_link

games_bp = Blueprint('games', __name__)


@games_bp.route('/')
@login_required
def index():
    with LiveView(store) as view:
        games = view.watch('games', records.games_from_snapshot).value

    return render_template('games.html', games=games, form=GameForm())


@games_bp.route('/tambah', methods=['POST'])
@login_required
@capability_required(Capability.MANAGE_GAMES)
def create():
    form = GameForm()
    if not form.validate_on_submit():
        flash(first_error(form), 'warning')
        return redirect(url_for('games.index'))

    link = form.link.data.strip()
    if not is_valid_game_link(link):
        flash('Link game tidak valid. Gunakan URL http:// atau https://', 'danger')
        return redirect(url_for('games.index'))

    try:
        store.push('games', {'judul': form.judul.data.strip(), 'link': link})
        flash('Game berhasil ditambahkan.', 'success')
    except StoreError:
        current_app.logger.exception("Gagal menambah game")
        flash('Gagal menambahkan game.', 'danger')
    return redirect(url_for('games.index'))


@games_bp.route('/<game_id>/hapus', methods=['POST'])
@login_required
@capability_required(Capability.MANAGE_GAMES)
def delete(game_id):
    try:
        if not store.get(f'games/{game_id}').exists():
            abort(404)
        store.remove(f'games/{game_id}')
        flash('Game berhasil dihapus.', 'success')
    except StoreError:
        current_app.logger.exception("Gagal menghapus game %s", game_id)
        flash('Gagal menghapus game.', 'danger')
    return redirect(url_for('games.index'))
