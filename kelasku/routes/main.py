from flask import (
    Blueprint,
    render_template,
    redirect,
    url_for,
    flash,
    current_app,
)
from flask_login import (
    login_required,
    current_user,
)

from kelasku.extensions import store
from kelasku.forms import ProfileForm
from kelasku.services import records
from kelasku.services.account_service import AccountService
from kelasku.services.dashboard import build_dashboard
from kelasku.services.live import LiveView
from kelasku.store import StoreError
from kelasku.utils.dates import DAY_NAMES, birthday_status, calculate_age, format_tanggal, parse_birth_date
from kelasku.utils.roles import role_duties

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    return redirect(url_for('main.dashboard'))


@main_bp.route('/dashboard')
@login_required
def dashboard():
    with LiveView(store) as view:
        users = view.watch('users', records.users_from_snapshot)
        kas = view.watch('kas', records.kas_from_snapshot)
        prs = view.watch('pr', records.prs_from_snapshot)
        chats = view.watch('chat', records.chats_from_snapshot)
        jadwal = view.watch('jadwal', records.jadwal_from_snapshot)

        stats = build_dashboard(
            users.value,
            kas.value.values(),
            prs.value,
            chats.value,
            jadwal.value,
        )

    return render_template(
        'dashboard.html',
        stats=stats,
        day_name=DAY_NAMES[stats.today_day],
        calculate_age=calculate_age,
    )


# ==========================================
# PROFIL
# ==========================================
@main_bp.route('/profile', methods=['GET', 'POST'])
@login_required
def profile():
    user = current_user.profile
    form = ProfileForm()

    if form.validate_on_submit():
        tanggal_lahir = form.tanggal_lahir.data.isoformat() if form.tanggal_lahir.data else ''
        try:
            AccountService.update_profile(user.uid, form.nama.data, tanggal_lahir)
            flash('Profile berhasil diperbarui.', 'success')
        except StoreError:
            current_app.logger.exception("Gagal memperbarui profil %s", user.uid)
            flash('Gagal memperbarui profile. Coba lagi nanti.', 'danger')
        return redirect(url_for('main.profile'))

    if not form.is_submitted():
        form.nama.data = user.nama
        form.tanggal_lahir.data = parse_birth_date(user.tanggal_lahir)

    return render_template(
        'profile.html',
        user=user,
        form=form,
        age=calculate_age(user.tanggal_lahir),
        status=birthday_status(user.tanggal_lahir),
        duties=role_duties(user.role),
        tanggal_lahir_label=format_tanggal(user.tanggal_lahir),
    )
