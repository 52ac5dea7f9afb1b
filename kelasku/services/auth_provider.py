"""
Penyedia autentikasi email/password.

Menghasilkan ``Principal`` (uid + email). Profil kelas (users/{uid})
dikelola terpisah oleh account_service.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from flask_login import login_user, logout_user, user_logged_in, user_logged_out
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from kelasku.extensions import db
from kelasku.models import Account


class AuthError(Exception):
    pass


@dataclass(frozen=True)
class Principal:
    uid: str
    email: str


def normalize_email(email):
    return (email or '').strip().lower()


def sign_up(email, password):
    email = normalize_email(email)
    if not email or not password:
        raise AuthError('Email dan password wajib diisi.')
    if Account.query.filter_by(email=email).first():
        raise AuthError(f'Email {email} sudah terdaftar.')

    account = Account(uid=uuid.uuid4().hex, email=email)
    account.set_password(password)
    try:
        account.save()
    except IntegrityError as exc:
        db.session.rollback()
        raise AuthError(f'Email {email} sudah terdaftar.') from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise AuthError('Gagal membuat akun.') from exc

    current_app.logger.info("Akun baru dibuat: %s (%s)", account.uid, email)
    return Principal(account.uid, account.email)


def authenticate(email, password):
    account = Account.query.filter_by(email=normalize_email(email)).first()
    if account is None or not account.check_password(password):
        return None
    return account


def sign_in(email, password, remember=False):
    account = authenticate(email, password)
    if account is None:
        raise AuthError('Login gagal. Cek kembali email dan password.')

    account.last_login = datetime.utcnow()
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Gagal mencatat login %s", account.uid)
        raise AuthError('Gagal masuk. Silakan coba lagi.') from exc
    login_user(account, remember=remember)
    return Principal(account.uid, account.email)


def sign_out():
    logout_user()


def delete_account(uid):
    account = db.session.get(Account, uid)
    if account is None:
        return False
    try:
        account.delete()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise AuthError(f'Gagal menghapus akun {uid}.') from exc
    current_app.logger.info("Akun dihapus: %s", uid)
    return True


# --- Notifikasi perubahan sesi ---
@user_logged_in.connect
def _on_session_start(sender, user, **extra):
    from kelasku.services.account_service import bootstrap_profile

    current_app.logger.info("Sesi dimulai: %s (%s)", user.uid, user.email)
    user.profile = bootstrap_profile(user)


@user_logged_out.connect
def _on_session_end(sender, user, **extra):
    if user is not None and getattr(user, 'uid', None):
        current_app.logger.info("Sesi berakhir: %s (%s)", user.uid, user.email)
