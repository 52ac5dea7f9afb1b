from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app
from flask_login import current_user, login_required
from kelasku.forms import LoginForm, RegisterForm
from kelasku.services import auth_provider
from kelasku.services.account_service import bootstrap_profile
from kelasku.services.auth_provider import AuthError
from kelasku.extensions import store
from kelasku.store import StoreError
from kelasku.utils.security import is_safe_url


auth_bp = Blueprint('auth', __name__)


# --- ROUTE LOGIN ----
@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    form = LoginForm()
    if form.validate_on_submit():
        try:
            auth_provider.sign_in(form.email.data, form.password.data, remember=form.remember.data)
        except AuthError as e:
            flash(str(e), 'danger')
            return render_template('auth/login.html', title='Login', form=form)

        flash('Login berhasil. Selamat datang!', 'success')
        next_page = request.args.get('next')
        if is_safe_url(next_page):
            return redirect(next_page)

        return redirect(url_for('main.dashboard'))

    return render_template('auth/login.html', title='Login', form=form)


# --- ROUTE DAFTAR ---
@auth_bp.route('/daftar', methods=['GET', 'POST'])
def register():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    form = RegisterForm()
    if form.validate_on_submit():
        try:
            principal = auth_provider.sign_up(form.email.data, form.password.data)
        except AuthError as e:
            flash(str(e), 'danger')
            return render_template('auth/register.html', title='Daftar', form=form)

        account = auth_provider.authenticate(principal.email, form.password.data)
        profile = bootstrap_profile(account)
        tanggal_lahir = form.tanggal_lahir.data.isoformat() if form.tanggal_lahir.data else ''
        try:
            store.update(f'users/{principal.uid}', {
                'nama': form.nama.data.strip(),
                'tanggal_lahir': tanggal_lahir,
            })
        except StoreError:
            current_app.logger.exception("Gagal melengkapi profil %s", principal.uid)
            flash(f'Akun dibuat, tetapi profil masih memakai nama {profile.nama}. Ubah di halaman profil.', 'warning')

        try:
            auth_provider.sign_in(form.email.data, form.password.data)
        except AuthError as e:
            flash(f'Akun dibuat, tetapi gagal masuk otomatis. {e}', 'warning')
            return redirect(url_for('auth.login'))
        flash('Pendaftaran berhasil. Selamat bergabung!', 'success')
        return redirect(url_for('main.dashboard'))

    return render_template('auth/register.html', title='Daftar', form=form)


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    auth_provider.sign_out()
    flash('Anda sudah keluar.', 'info')
    return redirect(url_for('auth.login'))
