from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required

from kelasku.decorators import capability_required
from kelasku.extensions import store
from kelasku.schemas import DAYS
from kelasku.services import records
from kelasku.services.live import LiveView
from kelasku.store import StoreError
from kelasku.utils.capabilities import Capability
from kelasku.utils.dates import DAY_NAMES, local_today, today_key

jadwal_bp = Blueprint('jadwal', __name__)


def parse_pelajaran(text):
    """Satu mata pelajaran per baris, baris kosong dibuang."""
    return [line.strip() for line in (text or '').splitlines() if line.strip()]


def clean_piket(uids, known_uids):
    # Urutan dipertahankan, duplikat dan uid asing dibuang
    cleaned = []
    for uid in uids:
        if uid in known_uids and uid not in cleaned:
            cleaned.append(uid)
    return cleaned


# ==========================================
# 1. JADWAL PELAJARAN
# ==========================================
@jadwal_bp.route('/jadwal')
@login_required
def jadwal():
    with LiveView(store) as view:
        jadwal = view.watch('jadwal', records.jadwal_from_snapshot).value

    max_jam = max((len(jadwal.pelajaran[day]) for day in DAYS), default=0)
    return render_template(
        'jadwal/pelajaran.html',
        days=DAYS,
        day_names=DAY_NAMES,
        pelajaran=jadwal.pelajaran,
        max_jam=max_jam,
        today=today_key(local_today()),
    )


@jadwal_bp.route('/jadwal/edit', methods=['POST'])
@login_required
@capability_required(Capability.EDIT_PELAJARAN)
def edit_jadwal():
    pelajaran = {day: parse_pelajaran(request.form.get(f'pelajaran_{day}')) for day in DAYS}
    try:
        store.set('jadwal/pelajaran', pelajaran)
        flash('Jadwal pelajaran berhasil disimpan.', 'success')
    except StoreError:
        current_app.logger.exception("Gagal menyimpan jadwal pelajaran")
        flash('Gagal menyimpan jadwal pelajaran.', 'danger')
    return redirect(url_for('jadwal.jadwal'))


# ==========================================
# 2. JADWAL PIKET
# ==========================================
@jadwal_bp.route('/piket')
@login_required
def piket():
    with LiveView(store) as view:
        piket = view.watch('jadwal/piket', records.piket_from_snapshot).value
        users = view.watch('users', records.users_from_snapshot).value

    users_map = records.users_by_uid(users)
    roster = {
        day: [users_map[uid] for uid in piket[day] if uid in users_map]
        for day in DAYS
    }
    return render_template(
        'jadwal/piket.html',
        days=DAYS,
        day_names=DAY_NAMES,
        roster=roster,
        piket=piket,
        users=users,
        today=today_key(local_today()),
    )


@jadwal_bp.route('/piket/edit', methods=['POST'])
@login_required
@capability_required(Capability.EDIT_PIKET)
def edit_piket():
    try:
        known_uids = {user.uid for user in records.users_from_snapshot(store.get('users'))}
        piket = {day: clean_piket(request.form.getlist(f'piket_{day}'), known_uids) for day in DAYS}
        store.set('jadwal/piket', piket)
        flash('Jadwal piket berhasil disimpan.', 'success')
    except StoreError:
        current_app.logger.exception("Gagal menyimpan jadwal piket")
        flash('Gagal menyimpan jadwal piket.', 'danger')
    return redirect(url_for('jadwal.piket'))
