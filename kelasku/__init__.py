import logging

from flask import Flask, render_template
from config import Config
from kelasku.extensions import db, migrate, login_manager, csrf, store
from kelasku.store import StoreKeyError


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # 0. Logging (pakai logger bawaan Flask)
    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    # 1. Init Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)

    # 2. Import Models (Penting agar db.create_all mendeteksi tabel)
    from kelasku import models
    from kelasku.services import auth_provider  # noqa: F401  (daftar listener sesi)

    store.init_app(app, db, models.StoreNode)

    # 3. User Loader (Wajib untuk Flask-Login)
    @login_manager.user_loader
    def load_user(uid):
        from kelasku.services.account_service import load_profile

        account = db.session.get(models.Account, uid)
        if account is None:
            return None
        account.profile = load_profile(account)
        return account

    # 4. Context Processor (pengaturan kelas + helper izin untuk template)
    @app.context_processor
    def inject_helpers():
        from flask_login import current_user
        from kelasku.services.records import default_pengaturan, pengaturan_from_snapshot
        from kelasku.store import StoreError
        from kelasku.utils.capabilities import Capability, user_can
        from kelasku.utils.roles import role_label

        try:
            pengaturan = pengaturan_from_snapshot(store.get('pengaturan'))
        except StoreError:
            app.logger.exception("Gagal membaca pengaturan, pakai default")
            pengaturan = default_pengaturan()

        def can(capability):
            if not current_user.is_authenticated:
                return False
            return user_can(current_user.profile, Capability[capability])

        return {
            'pengaturan': pengaturan,
            'can': can,
            'role_label': role_label,
        }

    # 5. Filter Template
    from kelasku.utils.dates import format_tanggal, format_waktu

    app.jinja_env.filters['tanggal'] = format_tanggal
    app.jinja_env.filters['waktu'] = format_waktu
    app.jinja_env.filters['rupiah'] = lambda value: f"Rp {int(value or 0):,}".replace(',', '.')

    # 6. Halaman Error
    @app.errorhandler(403)
    def forbidden(error):
        return render_template('errors/403.html'), 403

    @app.errorhandler(404)
    def not_found(error):
        return render_template('errors/404.html'), 404

    # ID dari URL yang tidak bisa jadi key data berarti data tidak ada
    @app.errorhandler(StoreKeyError)
    def invalid_key(error):
        app.logger.info("Path tidak valid diminta: %s", error)
        return render_template('errors/404.html'), 404

    # 7. Registrasi Blueprint
    from kelasku.routes.auth import auth_bp
    from kelasku.routes.main import main_bp
    from kelasku.routes.jadwal import jadwal_bp
    from kelasku.routes.kas import kas_bp
    from kelasku.routes.chat import chat_bp
    from kelasku.routes.diskusi import diskusi_bp
    from kelasku.routes.pr import pr_bp
    from kelasku.routes.info import info_bp
    from kelasku.routes.games import games_bp
    from kelasku.routes.ultah import ultah_bp
    from kelasku.routes.admin import admin_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(main_bp)
    app.register_blueprint(jadwal_bp)
    app.register_blueprint(kas_bp, url_prefix='/kas')
    app.register_blueprint(chat_bp, url_prefix='/chat')
    app.register_blueprint(diskusi_bp, url_prefix='/diskusi')
    app.register_blueprint(pr_bp, url_prefix='/pr')
    app.register_blueprint(info_bp, url_prefix='/info')
    app.register_blueprint(games_bp, url_prefix='/games')
    app.register_blueprint(ultah_bp, url_prefix='/ucapan-ultah')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    return app
