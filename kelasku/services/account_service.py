from flask import current_app
from pydantic import ValidationError

from kelasku.extensions import store
from kelasku.schemas import Kas, User, UserRole
from kelasku.services import auth_provider
from kelasku.services.records import pengaturan_from_snapshot, user_from_snapshot
from kelasku.store import StoreError


def default_profile(account):
    """Profil minimal agar UI tetap bisa dipakai walau profil asli belum ada."""
    try:
        kelas = pengaturan_from_snapshot(store.get('pengaturan')).nama_kelas
    except StoreError:
        kelas = current_app.config.get('DEFAULT_KELAS', '')
    return User(
        uid=account.uid,
        nama=account.email.split('@')[0],
        email=account.email,
        kelas=kelas,
        tanggal_lahir='',
        role=UserRole.MURID,
        is_admin=False,
    )


def _read_profile(account):
    try:
        return user_from_snapshot(store.get(f'users/{account.uid}'))
    except StoreError:
        current_app.logger.exception("Gagal membaca profil %s", account.uid)
        return None


def load_profile(account):
    return _read_profile(account) or default_profile(account)


def bootstrap_profile(account):
    user = _read_profile(account)
    if user is not None:
        return user

    profile = default_profile(account)
    try:
        store.set(f'users/{account.uid}', profile.to_store())
    except StoreError:
        current_app.logger.exception("Gagal menyimpan profil default %s, pakai profil lokal", account.uid)
    return profile


class AccountService:
    @staticmethod
    def create_member(email, password, nama, kelas, tanggal_lahir='', role=UserRole.MURID, is_admin=False):
        """Akun login + profil users/{uid} + kas/{uid} kosong."""
        principal = auth_provider.sign_up(email, password)

        try:
            user = User(
                uid=principal.uid,
                nama=nama.strip(),
                email=principal.email,
                kelas=kelas,
                tanggal_lahir=tanggal_lahir or '',
                role=role,
                is_admin=is_admin,
            )
            store.update('', {
                f'users/{user.uid}': user.to_store(),
                f'kas/{user.uid}': Kas(uid=user.uid).to_store(),
            })
        except (ValidationError, StoreError):
            # Jangan tinggalkan akun tanpa profil
            try:
                auth_provider.delete_account(principal.uid)
            except auth_provider.AuthError:
                current_app.logger.exception("Akun %s tertinggal tanpa profil", principal.uid)
            raise
        return user

    @staticmethod
    def update_member(user):
        store.set(f'users/{user.uid}', user.to_store())
        return user

    @staticmethod
    def update_profile(uid, nama, tanggal_lahir):
        store.update(f'users/{uid}', {
            'nama': nama.strip(),
            'tanggal_lahir': tanggal_lahir or '',
        })

    @staticmethod
    def delete_member(uid):
        store.update('', {
            f'users/{uid}': None,
            f'kas/{uid}': None,
        })
        auth_provider.delete_account(uid)
