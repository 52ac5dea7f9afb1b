from flask import Blueprint, render_template, redirect, url_for, flash, current_app, abort
from flask_login import login_required, current_user

from kelasku.extensions import store
from kelasku.forms import UcapanForm, first_error
from kelasku.schemas import Ucapan
from kelasku.services import records
from kelasku.services.dashboard import birthdays_today, upcoming_birthdays
from kelasku.services.live import LiveView
from kelasku.store import StoreError
from kelasku.utils import ordering
from kelasku.utils.dates import MONTH_NAMES, calculate_age, is_birthday_this_week, local_today, now_iso

ultah_bp = Blueprint('ultah', __name__)


def birthday_calendar(users):
    """Kelompokkan user per bulan lahir: [(nama_bulan, [user, ...]), ...]."""
    calendar = {}
    for user in ordering.sort_by_birthday(users):
        calendar.setdefault(user.birth_date.month, []).append(user)
    return [(MONTH_NAMES[month - 1], members) for month, members in sorted(calendar.items())]


@ultah_bp.route('/')
@login_required
def index():
    today = local_today()
    with LiveView(store) as view:
        users = view.watch('users', records.users_from_snapshot).value
        ultah = view.watch('ultah', records.ultah_from_snapshot).value

    celebrants = [
        {
            'user': user,
            'umur': calculate_age(user.tanggal_lahir, today),
            'ucapan': ordering.sorted_ucapan(ultah.get(user.uid)),
        }
        for user in birthdays_today(users, today)
    ]
    return render_template(
        'ultah.html',
        celebrants=celebrants,
        upcoming=upcoming_birthdays(users, today),
        calendar=birthday_calendar(users),
        users_map=records.users_by_uid(users),
        form=UcapanForm(),
    )


@ultah_bp.route('/<uid>/kirim', methods=['POST'])
@login_required
def send(uid):
    try:
        target = records.user_from_snapshot(store.get(f'users/{uid}'))
    except StoreError:
        current_app.logger.exception("Gagal membaca profil %s", uid)
        flash('Gagal mengirim ucapan.', 'danger')
        return redirect(url_for('ultah.index'))

    if target is None:
        abort(404)

    if not is_birthday_this_week(target.tanggal_lahir):
        flash(f'Ucapan hanya bisa dikirim saat ulang tahun {target.nama} sudah dekat.', 'warning')
        return redirect(url_for('ultah.index'))

    form = UcapanForm()
    if not form.validate_on_submit():
        flash(first_error(form), 'warning')
        return redirect(url_for('ultah.index'))

    ucapan = Ucapan(sender=current_user.uid, pesan=form.pesan.data.strip(), timestamp=now_iso())
    try:
        store.update(f'ultah/{uid}', {'uid': uid, 'tanggal_lahir': target.tanggal_lahir})
        store.push(f'ultah/{uid}/ucapan', ucapan.to_store())
        flash(f'Ucapan untuk {target.nama} terkirim! 🎉', 'success')
    except StoreError:
        current_app.logger.exception("Gagal mengirim ucapan untuk %s", uid)
        flash('Gagal mengirim ucapan.', 'danger')
    return redirect(url_for('ultah.index'))
