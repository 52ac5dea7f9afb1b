import os
from dotenv import load_dotenv

# Muat variabel dari file .env (untuk di laptop)
load_dotenv()


class Config:
    # 1. SECRET KEY
    # Tambahkan 'or ...' sebagai cadangan agar tidak error jika lupa set env
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'kunci-rahasia-kelas-default'

    # 2. DATABASE (penyimpan pohon data realtime + akun login)
    db_uri = os.environ.get('DATABASE_URL')

    # Hosting sering memberikan URL 'postgres://', tapi SQLAlchemy butuh 'postgresql://'
    if db_uri and db_uri.startswith("postgres://"):
        db_uri = db_uri.replace("postgres://", "postgresql://", 1)

    # Jika db_uri kosong (misal di laptop belum setting), otomatis pakai SQLite
    SQLALCHEMY_DATABASE_URI = db_uri or 'sqlite:///kelasku_lokal.db'

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # 3. IDENTITAS KELAS (cadangan jika node 'pengaturan' belum diisi admin)
    DEFAULT_KELAS = os.environ.get('DEFAULT_KELAS') or '12 C Teknik'
    DEFAULT_WARNA_TEMA = os.environ.get('DEFAULT_WARNA_TEMA') or '#1E3A8A'
    DEFAULT_VERSI_APLIKASI = os.environ.get('DEFAULT_VERSI_APLIKASI') or 'v1.0.0'

    # 4. LOGGING
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = 'DEBUG'
