from flask import Blueprint, render_template, redirect, url_for, flash, current_app, abort
from flask_login import login_required, current_user

from kelasku.decorators import capability_required
from kelasku.extensions import store
from kelasku.forms import InfoForm, first_error
from kelasku.schemas import Info
from kelasku.services import records
from kelasku.services.live import LiveView
from kelasku.store import StoreError
from kelasku.utils.capabilities import Capability
from kelasku.utils.dates import now_iso

info_bp = Blueprint('info', __name__)


@info_bp.route('/')
@login_required
def index():
    with LiveView(store) as view:
        infos = view.watch('info', records.infos_from_snapshot).value
        users = view.watch('users', records.users_from_snapshot).value

    return render_template(
        'info.html',
        pinned=[info for info in infos if info.pin],
        infos=[info for info in infos if not info.pin],
        users_map=records.users_by_uid(users),
        form=InfoForm(),
    )


@info_bp.route('/buat', methods=['POST'])
@login_required
@capability_required(Capability.CREATE_INFO)
def create():
    form = InfoForm()
    if not form.validate_on_submit():
        flash(first_error(form), 'warning')
        return redirect(url_for('info.index'))

    info = Info(
        id='-',
        judul=form.judul.data.strip(),
        isi=form.isi.data.strip(),
        pengirim=current_user.uid,
        timestamp=now_iso(),
    )
    try:
        store.push('info', info.to_store(exclude={'id'}))
        flash('Info berhasil dibuat.', 'success')
    except StoreError:
        current_app.logger.exception("Gagal membuat info")
        flash('Gagal membuat info.', 'danger')
    return redirect(url_for('info.index'))


@info_bp.route('/<info_id>/pin', methods=['POST'])
@login_required
@capability_required(Capability.PIN_INFO)
def toggle_pin(info_id):
    try:
        info = records.decode_one(store.get(f'info/{info_id}'), Info, id=info_id)
        if info is None:
            abort(404)
        store.update(f'info/{info_id}', {'pin': not info.pin})
        flash('Info dilepas dari pin.' if info.pin else 'Info berhasil di-pin.', 'success')
    except StoreError:
        current_app.logger.exception("Gagal mengubah pin info %s", info_id)
        flash('Gagal mengubah pin info.', 'danger')
    return redirect(url_for('info.index'))


@info_bp.route('/<info_id>/hapus', methods=['POST'])
@login_required
@capability_required(Capability.DELETE_INFO)
def delete(info_id):
    try:
        if not store.get(f'info/{info_id}').exists():
            abort(404)
        store.remove(f'info/{info_id}')
        flash('Info berhasil dihapus.', 'success')
    except StoreError:
        current_app.logger.exception("Gagal menghapus info %s", info_id)
        flash('Gagal menghapus info.', 'danger')
    return redirect(url_for('info.index'))
