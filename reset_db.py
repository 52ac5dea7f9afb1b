from kelasku import create_app, db
from sqlalchemy import text

app = create_app()

with app.app_context():
    print("Sedang menghapus semua tabel...")

    # 1. Hapus tabel tracking migrasi (alembic_version)
    try:
        db.session.execute(text("DROP TABLE IF EXISTS alembic_version"))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        print(f"Warning alembic: {e}")

    # 2. Hapus semua tabel aplikasi (accounts, store_nodes)
    db.drop_all()

    print("✅ SUKSES! Database sekarang sudah kosong melompong.")
