from flask import Blueprint, render_template, redirect, url_for, flash, current_app, abort
from flask_login import login_required

from kelasku.decorators import capability_required
from kelasku.extensions import store
from kelasku.forms import KasPaymentForm, first_error
from kelasku.schemas import Kas
from kelasku.services import records
from kelasku.services.dashboard import kas_summary
from kelasku.services.kas_service import KasService
from kelasku.services.live import LiveView
from kelasku.store import StoreError
from kelasku.utils.capabilities import Capability
from kelasku.utils.dates import current_month

kas_bp = Blueprint('kas', __name__)


@kas_bp.route('/')
@login_required
def index():
    with LiveView(store) as view:
        users = view.watch('users', records.users_from_snapshot).value
        kas_watch = view.watch('kas', records.kas_from_snapshot)

        # Kas kosong dibuat saat pertama kali daftar kas dibuka
        try:
            created = KasService.ensure_records(users, kas_watch.value)
            if created:
                current_app.logger.info("Membuat %d record kas baru", len(created))
        except StoreError:
            current_app.logger.exception("Gagal membuat record kas kosong")
            flash('Sebagian data kas belum bisa dibuat.', 'danger')

        kas_map = kas_watch.value

    rows = [(user, kas_map.get(user.uid) or Kas(uid=user.uid)) for user in users]
    return render_template(
        'kas.html',
        rows=rows,
        summary=kas_summary(kas for _, kas in rows),
        form=KasPaymentForm(),
        month=current_month(),
    )


@kas_bp.route('/<uid>/bayar', methods=['POST'])
@login_required
@capability_required(Capability.EDIT_KAS)
def record_payment(uid):
    form = KasPaymentForm()
    if not form.validate_on_submit():
        flash(first_error(form), 'warning')
        return redirect(url_for('kas.index'))

    try:
        user = records.user_from_snapshot(store.get(f'users/{uid}'))
        if user is None:
            abort(404)
        kas = KasService.record_payment(uid, form.amount.data, form.status.data)
        flash(f'Pembayaran {user.nama} tersimpan. Total: Rp {kas.total:,}'.replace(',', '.'), 'success')
    except StoreError:
        current_app.logger.exception("Gagal mencatat pembayaran kas %s", uid)
        flash('Gagal menyimpan pembayaran kas.', 'danger')
    return redirect(url_for('kas.index'))
