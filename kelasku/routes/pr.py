from flask import Blueprint, render_template, redirect, url_for, flash, current_app, abort
from flask_login import login_required, current_user

from kelasku.decorators import capability_required
from kelasku.extensions import store
from kelasku.forms import PRForm, first_error
from kelasku.schemas import PR
from kelasku.services import records
from kelasku.services.dashboard import pr_priority_stats
from kelasku.services.live import LiveView
from kelasku.store import StoreError
from kelasku.utils.capabilities import Capability
from kelasku.utils.dates import now_iso

pr_bp = Blueprint('pr', __name__)


@pr_bp.route('/')
@login_required
def index():
    with LiveView(store) as view:
        prs = view.watch('pr', records.prs_from_snapshot).value
        users = view.watch('users', records.users_from_snapshot).value

    return render_template(
        'pr.html',
        prs=prs,
        stats=pr_priority_stats(prs),
        users_map=records.users_by_uid(users),
        form=PRForm(),
    )


@pr_bp.route('/buat', methods=['POST'])
@login_required
@capability_required(Capability.CREATE_PR)
def create():
    form = PRForm()
    if not form.validate_on_submit():
        flash(first_error(form), 'warning')
        return redirect(url_for('pr.index'))

    pr = PR(
        id='-',
        judul=form.judul.data.strip(),
        isi=form.isi.data.strip(),
        pengirim=current_user.uid,
        priority=form.priority.data,
        timestamp=now_iso(),
    )
    try:
        store.push('pr', pr.to_store(exclude={'id'}))
        flash('PR/Tugas berhasil dibuat.', 'success')
    except StoreError:
        current_app.logger.exception("Gagal membuat PR")
        flash('Gagal membuat PR/Tugas.', 'danger')
    return redirect(url_for('pr.index'))


@pr_bp.route('/<pr_id>/hapus', methods=['POST'])
@login_required
@capability_required(Capability.DELETE_PR)
def delete(pr_id):
    try:
        if not store.get(f'pr/{pr_id}').exists():
            abort(404)
        store.remove(f'pr/{pr_id}')
        flash('PR/Tugas berhasil dihapus.', 'success')
    except StoreError:
        current_app.logger.exception("Gagal menghapus PR %s", pr_id)
        flash('Gagal menghapus PR/Tugas.', 'danger')
    return redirect(url_for('pr.index'))
