from flask import Blueprint, render_template, redirect, url_for, flash, current_app, abort
from flask_login import login_required, current_user

from kelasku.decorators import capability_required
from kelasku.extensions import store
from kelasku.forms import ReplyForm, TopicForm, first_error
from kelasku.schemas import Balasan, Diskusi
from kelasku.services import records
from kelasku.services.live import LiveView
from kelasku.store import StoreError
from kelasku.utils import ordering
from kelasku.utils.capabilities import Capability
from kelasku.utils.dates import now_iso

diskusi_bp = Blueprint('diskusi', __name__)


def _get_or_404(diskusi_id):
    diskusi = records.diskusi_from_snapshot(store.get(f'diskusi/{diskusi_id}'))
    if diskusi is None:
        abort(404)
    return diskusi


# ==========================================
# 1. DAFTAR TOPIK
# ==========================================
@diskusi_bp.route('/')
@login_required
def index():
    with LiveView(store) as view:
        topics = view.watch('diskusi', records.diskusi_list_from_snapshot).value
        users = view.watch('users', records.users_from_snapshot).value

    rows = [
        {
            'diskusi': topic,
            'balasan': len(topic.isi),
            'terakhir': ordering.latest_reply(topic),
        }
        for topic in topics
    ]
    return render_template(
        'diskusi/index.html',
        pinned=[row for row in rows if row['diskusi'].pin],
        rows=[row for row in rows if not row['diskusi'].pin],
        users_map=records.users_by_uid(users),
        form=TopicForm(),
    )


@diskusi_bp.route('/buat', methods=['POST'])
@login_required
def create():
    form = TopicForm()
    if not form.validate_on_submit():
        flash(first_error(form), 'warning')
        return redirect(url_for('diskusi.index'))

    topic = Diskusi(
        id='-',
        judul=form.judul.data.strip(),
        dibuat_oleh=current_user.uid,
        timestamp=now_iso(),
    )
    try:
        diskusi_id = store.push('diskusi', topic.to_store(exclude={'id', 'isi'}))
    except StoreError:
        current_app.logger.exception("Gagal membuat topik diskusi")
        flash('Gagal membuat topik diskusi.', 'danger')
        return redirect(url_for('diskusi.index'))

    flash('Topik diskusi berhasil dibuat.', 'success')
    return redirect(url_for('diskusi.detail', diskusi_id=diskusi_id))


# ==========================================
# 2. DETAIL & BALASAN
# ==========================================
@diskusi_bp.route('/<diskusi_id>')
@login_required
def detail(diskusi_id):
    with LiveView(store) as view:
        diskusi = view.watch(f'diskusi/{diskusi_id}', records.diskusi_from_snapshot).value
        users = view.watch('users', records.users_from_snapshot).value

    if diskusi is None:
        abort(404)

    return render_template(
        'diskusi/detail.html',
        diskusi=diskusi,
        replies=ordering.sorted_replies(diskusi),
        users_map=records.users_by_uid(users),
        form=ReplyForm(),
    )


@diskusi_bp.route('/<diskusi_id>/balas', methods=['POST'])
@login_required
def reply(diskusi_id):
    _get_or_404(diskusi_id)

    form = ReplyForm()
    if not form.validate_on_submit():
        flash(first_error(form), 'warning')
        return redirect(url_for('diskusi.detail', diskusi_id=diskusi_id))

    balasan = Balasan(sender=current_user.uid, pesan=form.pesan.data.strip(), timestamp=now_iso())
    try:
        store.push(f'diskusi/{diskusi_id}/isi', balasan.to_store())
    except StoreError:
        current_app.logger.exception("Gagal membalas diskusi %s", diskusi_id)
        flash('Gagal mengirim balasan.', 'danger')
    return redirect(url_for('diskusi.detail', diskusi_id=diskusi_id))


@diskusi_bp.route('/<diskusi_id>/pin', methods=['POST'])
@login_required
@capability_required(Capability.PIN_DISKUSI)
def toggle_pin(diskusi_id):
    diskusi = _get_or_404(diskusi_id)
    try:
        store.update(f'diskusi/{diskusi_id}', {'pin': not diskusi.pin})
        flash('Topik dilepas dari pin.' if diskusi.pin else 'Topik berhasil di-pin.', 'success')
    except StoreError:
        current_app.logger.exception("Gagal mengubah pin diskusi %s", diskusi_id)
        flash('Gagal mengubah pin topik.', 'danger')
    return redirect(url_for('diskusi.index'))
