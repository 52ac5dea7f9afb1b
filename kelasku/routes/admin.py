from datetime import datetime, date
import csv
from io import TextIOWrapper
from flask import Blueprint, render_template, redirect, url_for, flash, current_app, abort
from flask_login import login_required, current_user
from openpyxl import load_workbook
from pydantic import ValidationError

from kelasku.decorators import admin_required
from kelasku.extensions import store
from kelasku.forms import PengaturanForm, UserCreateForm, UserEditForm, UserImportForm, first_error
from kelasku.schemas import Pengaturan, User, UserRole
from kelasku.services import records
from kelasku.services.account_service import AccountService
from kelasku.services.auth_provider import AuthError
from kelasku.services.live import LiveView
from kelasku.store import StoreError
from kelasku.utils.dates import parse_birth_date
from kelasku.utils.roles import is_pengurus, parse_role

admin_bp = Blueprint('admin', __name__)


def _iter_upload_rows(file):
    def _normalize_cell(value):
        if value is None:
            return ''
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, float):
            if value.is_integer():
                return str(int(value))
            return str(value).strip()
        if isinstance(value, int):
            return str(value)
        return str(value).strip()

    filename = (file.filename or "").lower()
    if filename.endswith('.xlsx'):
        workbook = load_workbook(file, data_only=True)
        sheet = workbook.active
        rows = list(sheet.iter_rows(values_only=True))
        if not rows:
            return []
        headers = [str(cell).strip().lower() if cell is not None else '' for cell in rows[0]]
        parsed = []
        for idx, row in enumerate(rows[1:], start=2):
            if all(cell is None for cell in row):
                continue
            row_data = {}
            for col_idx, header in enumerate(headers):
                value = row[col_idx] if col_idx < len(row) else None
                row_data[header] = _normalize_cell(value)
            parsed.append((idx, row_data))
        return parsed

    wrapper = TextIOWrapper(file.stream, encoding='utf-8-sig')
    reader = csv.DictReader(wrapper)
    return [(idx, {(k or '').strip().lower(): (v.strip() if isinstance(v, str) else '' if v is None else str(v).strip())
                   for k, v in row.items()})
            for idx, row in enumerate(reader, start=2)]


def user_counts(users):
    return {
        'total': len(users),
        'admin': sum(1 for user in users if user.is_admin),
        'pengurus': sum(1 for user in users if is_pengurus(user)),
        'murid': sum(1 for user in users if user.role == UserRole.MURID),
    }


def _current_kelas():
    return records.pengaturan_from_snapshot(store.get('pengaturan')).nama_kelas


# =========================================================
# 1. MANAJEMEN USER
# =========================================================
@admin_bp.route('/users')
@login_required
@admin_required
def users():
    with LiveView(store) as view:
        users = view.watch('users', records.users_from_snapshot).value

    form = UserCreateForm()
    form.kelas.data = form.kelas.data or _current_kelas()
    return render_template(
        'admin/users.html',
        users=users,
        counts=user_counts(users),
        form=form,
        import_form=UserImportForm(),
    )


@admin_bp.route('/users/tambah', methods=['POST'])
@login_required
@admin_required
def create_user():
    form = UserCreateForm()
    if not form.validate_on_submit():
        flash(first_error(form), 'warning')
        return redirect(url_for('admin.users'))

    try:
        user = AccountService.create_member(
            email=form.email.data,
            password=form.password.data,
            nama=form.nama.data,
            kelas=form.kelas.data.strip(),
            tanggal_lahir=form.tanggal_lahir.data.isoformat() if form.tanggal_lahir.data else '',
            role=parse_role(form.role.data) or UserRole.MURID,
            is_admin=form.is_admin.data,
        )
        flash(f'User {user.nama} berhasil ditambahkan.', 'success')
    except AuthError as e:
        flash(str(e), 'danger')
    except ValidationError as e:
        flash(f'Data user tidak valid: {e.errors()[0]["msg"]}', 'danger')
    except StoreError:
        current_app.logger.exception("Gagal membuat user %s", form.email.data)
        flash('Gagal menyimpan user baru.', 'danger')
    return redirect(url_for('admin.users'))


@admin_bp.route('/users/<uid>/edit', methods=['GET', 'POST'])
@login_required
@admin_required
def edit_user(uid):
    try:
        user = records.user_from_snapshot(store.get(f'users/{uid}'))
    except StoreError:
        current_app.logger.exception("Gagal membaca user %s", uid)
        flash('Gagal membaca data user.', 'danger')
        return redirect(url_for('admin.users'))

    if user is None:
        abort(404)

    form = UserEditForm()
    if form.validate_on_submit():
        data = user.to_store()
        data.update({
            'nama': form.nama.data.strip(),
            'role': form.role.data,
            'isAdmin': form.is_admin.data,
        })
        try:
            AccountService.update_member(User.model_validate(data))
            flash(f'Data {data["nama"]} berhasil diperbarui.', 'success')
            return redirect(url_for('admin.users'))
        except ValidationError as e:
            flash(f'Data user tidak valid: {e.errors()[0]["msg"]}', 'danger')
        except StoreError:
            current_app.logger.exception("Gagal memperbarui user %s", uid)
            flash('Gagal memperbarui data user.', 'danger')
    elif form.is_submitted():
        flash(first_error(form), 'warning')
    else:
        form.nama.data = user.nama
        form.role.data = user.role.value
        form.is_admin.data = user.is_admin

    return render_template('admin/edit_user.html', user=user, form=form)


@admin_bp.route('/users/<uid>/hapus', methods=['POST'])
@login_required
@admin_required
def delete_user(uid):
    if uid == current_user.uid:
        flash('Tidak bisa menghapus akun sendiri.', 'warning')
        return redirect(url_for('admin.users'))

    try:
        user = records.user_from_snapshot(store.get(f'users/{uid}'))
        AccountService.delete_member(uid)
        flash(f'User {user.nama if user else uid} berhasil dihapus.', 'success')
    except StoreError:
        current_app.logger.exception("Gagal menghapus user %s", uid)
        flash('Gagal menghapus user.', 'danger')
    except AuthError:
        current_app.logger.exception("Gagal menghapus akun login %s", uid)
        flash('Profil terhapus, tetapi akun login gagal dihapus. Coba hapus lagi.', 'danger')
    return redirect(url_for('admin.users'))


@admin_bp.route('/users/import', methods=['POST'])
@login_required
@admin_required
def import_users():
    form = UserImportForm()
    if not form.validate_on_submit():
        flash(first_error(form), 'warning')
        return redirect(url_for('admin.users'))

    try:
        kelas = _current_kelas()
    except StoreError:
        current_app.logger.exception("Gagal membaca pengaturan saat import")
        flash('Gagal membaca pengaturan kelas.', 'danger')
        return redirect(url_for('admin.users'))

    try:
        rows = _iter_upload_rows(form.file.data)
    except (UnicodeDecodeError, csv.Error):
        current_app.logger.warning("File import %s tidak bisa dibaca", form.file.data.filename, exc_info=True)
        flash('File CSV tidak bisa dibaca. Simpan ulang dengan encoding UTF-8.', 'danger')
        return redirect(url_for('admin.users'))

    created = 0
    skipped = 0
    errors = []

    for idx, row in rows:
        nama = row.get('nama', '')
        email = row.get('email', '')
        password = row.get('password', '')
        tanggal_lahir = row.get('tanggal_lahir', '')
        role_raw = row.get('role', '')

        if not nama or not email or not password:
            skipped += 1
            errors.append(f'Baris {idx}: nama, email dan password wajib diisi.')
            continue

        if tanggal_lahir and parse_birth_date(tanggal_lahir) is None:
            skipped += 1
            errors.append(f'Baris {idx}: tanggal_lahir harus format YYYY-MM-DD.')
            continue

        role = parse_role(role_raw) if role_raw else UserRole.MURID
        if role is None:
            skipped += 1
            errors.append(f'Baris {idx}: role {role_raw} tidak dikenal.')
            continue

        try:
            AccountService.create_member(
                email=email,
                password=password,
                nama=nama,
                kelas=kelas,
                tanggal_lahir=tanggal_lahir,
                role=role,
            )
            created += 1
        except AuthError as exc:
            skipped += 1
            errors.append(f'Baris {idx}: {exc}')
        except ValidationError as exc:
            skipped += 1
            errors.append(f'Baris {idx}: {exc.errors()[0]["msg"]}')
        except StoreError:
            current_app.logger.exception("Gagal import baris %s (%s)", idx, email)
            skipped += 1
            errors.append(f'Baris {idx}: gagal menyimpan ke database.')

    current_app.logger.info("Import user selesai: %d dibuat, %d dilewati", created, skipped)
    flash(f'Import user selesai. Berhasil: {created}, Dilewati: {skipped}.', 'success')
    if errors:
        flash('Contoh error: ' + '; '.join(errors[:3]), 'warning')
    return redirect(url_for('admin.users'))


# =========================================================
# 2. PENGATURAN KELAS
# =========================================================
@admin_bp.route('/pengaturan', methods=['GET', 'POST'])
@login_required
@admin_required
def pengaturan():
    form = PengaturanForm()
    if form.validate_on_submit():
        pengaturan = Pengaturan(
            nama_kelas=form.nama_kelas.data.strip(),
            warna_tema=form.warna_tema.data.strip(),
            versi_aplikasi=form.versi_aplikasi.data.strip(),
        )
        try:
            store.set('pengaturan', pengaturan.to_store())
            flash('Pengaturan tersimpan.', 'success')
        except StoreError:
            current_app.logger.exception("Gagal menyimpan pengaturan")
            flash('Gagal menyimpan pengaturan.', 'danger')
        return redirect(url_for('admin.pengaturan'))

    if form.is_submitted():
        flash(first_error(form), 'warning')
    else:
        try:
            current = records.pengaturan_from_snapshot(store.get('pengaturan'))
        except StoreError:
            current_app.logger.exception("Gagal membaca pengaturan")
            current = records.default_pengaturan()
        form.nama_kelas.data = current.nama_kelas
        form.warna_tema.data = current.warna_tema
        form.versi_aplikasi.data = current.versi_aplikasi

    return render_template('admin/pengaturan.html', form=form)
