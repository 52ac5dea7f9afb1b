import contextlib
from datetime import datetime, timedelta, timezone

import pytest
from flask import has_app_context

from config import TestConfig
from kelasku import create_app
from kelasku.extensions import db, store
from kelasku.schemas import UserRole
from kelasku.services.account_service import AccountService

PASSWORD = 'rahasia123'


def _context(app):
    # Pakai app context yang sudah aktif (fixture ctx) bila ada
    return contextlib.nullcontext() if has_app_context() else app.app_context()


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """App context untuk test yang memanggil store/service langsung."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_member(app):
    counter = {'n': 0}

    def _make(nama=None, role=UserRole.MURID, is_admin=False, tanggal_lahir='', email=None):
        counter['n'] += 1
        nama = nama or f'Anggota {counter["n"]}'
        email = email or f'anggota{counter["n"]}@kelas.id'
        with _context(app):
            return AccountService.create_member(
                email=email,
                password=PASSWORD,
                nama=nama,
                kelas='12 C Teknik',
                tanggal_lahir=tanggal_lahir,
                role=role,
                is_admin=is_admin,
            )

    return _make


@pytest.fixture
def login(client):
    def _login(user, password=PASSWORD):
        return client.post('/auth/login', data={'email': user.email, 'password': password})

    return _login


@pytest.fixture
def read(app):
    def _read(path=''):
        with _context(app):
            return store.get(path).val()

    return _read


def ts(minutes=0):
    """Timestamp ISO (UTC) relatif terhadap titik tetap, untuk data urutan."""
    base = datetime(2026, 1, 10, 8, 0, tzinfo=timezone.utc)
    return (base + timedelta(minutes=minutes)).isoformat().replace('+00:00', 'Z')
