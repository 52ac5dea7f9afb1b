from kelasku.extensions import db
from datetime import datetime
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash


# ==========================================
# 0. BASE MODEL
# ==========================================
class BaseModel(db.Model):
    """
    Kelas Abstract yang diwarisi semua model.
    Menyediakan Timestamp otomatis. Tidak ada soft delete: data kelas
    dihapus permanen saat diminta.
    """
    __abstract__ = True

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def save(self):
        db.session.add(self)
        db.session.commit()

    def delete(self):
        db.session.delete(self)
        db.session.commit()


# ==========================================
# 1. AKUN LOGIN (PENYEDIA AUTENTIKASI)
# ==========================================
class Account(UserMixin, BaseModel):
    """
    Identitas login (uid + email + password).
    Data profil kelas TIDAK disimpan di sini, melainkan di node users/{uid}.
    """
    __tablename__ = 'accounts'
    uid = db.Column(db.String(32), primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256))
    last_login = db.Column(db.DateTime)

    # Diisi oleh user_loader setiap request (bukan kolom)
    profile = None

    def get_id(self):
        return self.uid

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)


# ==========================================
# 2. POHON DATA REALTIME
# ==========================================
class StoreNode(BaseModel):
    """Satu baris per node akar (users, kas, jadwal, pr, ...). Isi = JSON subtree."""
    __tablename__ = 'store_nodes'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(64), unique=True, nullable=False)
    value = db.Column(db.JSON)
