"""
Bentuk record yang disimpan di pohon data.

Setiap pembacaan melewati ``decode()`` yang mengembalikan ``Ok(record)``
atau ``Invalid(alasan)``; pemanggil yang memutuskan apa yang dilakukan
dengan data rusak. Untuk menulis, gunakan ``to_store()`` agar nama field
(``isAdmin``, ``from``) sama persis dengan yang tersimpan.
"""
import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator


# ==========================================
# 1. ENUMS
# ==========================================
class UserRole(enum.Enum):
    MURID = "murid"
    KETUA_KELAS = "ketua_kelas"
    WAKIL_KETUA = "wakil_ketua"
    BENDAHARA = "bendahara"
    SEKRETARIS = "sekretaris"
    SEKSI_KEBERSIHAN = "seksi_kebersihan"
    SEKSI_KEAMANAN = "seksi_keamanan"
    ADMIN = "admin"


class KasStatus(enum.Enum):
    SUDAH = "sudah"
    BELUM = "belum"


class Priority(enum.Enum):
    URGENT = "urgent"
    NORMAL = "normal"
    RINGAN = "ringan"


DAYS = ['senin', 'selasa', 'rabu', 'kamis', 'jumat', 'sabtu']


def _local_aware(value):
    # Timestamp tanpa zona waktu dianggap waktu lokal
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.astimezone()
    return value


class StoredRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_store(self, exclude=None):
        return self.model_dump(mode='json', by_alias=True, exclude=exclude)


class TimestampedRecord(StoredRecord):
    timestamp: datetime

    @field_validator('timestamp')
    @classmethod
    def _timestamp_aware(cls, value):
        return _local_aware(value)


# ==========================================
# 2. USERS & KAS
# ==========================================
class User(StoredRecord):
    uid: str = Field(min_length=1)
    nama: str
    email: EmailStr
    kelas: str
    tanggal_lahir: str = ''
    role: UserRole
    is_admin: bool = Field(False, alias='isAdmin')

    @field_validator('tanggal_lahir')
    @classmethod
    def _tanggal_lahir_iso(cls, value):
        if value:
            date.fromisoformat(value)
        return value

    @property
    def birth_date(self) -> Optional[date]:
        return date.fromisoformat(self.tanggal_lahir) if self.tanggal_lahir else None


class Kas(StoredRecord):
    uid: str = Field(min_length=1)
    total: int = 0
    status: KasStatus = KasStatus.BELUM
    riwayat: Dict[str, int] = Field(default_factory=dict)


# ==========================================
# 3. JADWAL
# ==========================================
class Jadwal(StoredRecord):
    pelajaran: Dict[str, List[str]] = Field(default_factory=dict)
    piket: Dict[str, List[str]] = Field(default_factory=dict)


# ==========================================
# 4. PR, INFO, CHAT, DISKUSI
# ==========================================
class PR(TimestampedRecord):
    id: str
    judul: str
    isi: str
    pengirim: str
    priority: Priority = Priority.NORMAL


class Info(TimestampedRecord):
    id: str
    judul: str
    isi: str
    pengirim: str
    pin: bool = False


class Chat(TimestampedRecord):
    id: str
    sender: str = Field(alias='from')
    message: str


class Balasan(TimestampedRecord):
    sender: str = Field(alias='from')
    pesan: str


class Diskusi(TimestampedRecord):
    id: str
    judul: str
    dibuat_oleh: str
    pin: bool = False
    isi: Dict[str, Balasan] = Field(default_factory=dict)


# ==========================================
# 5. ULANG TAHUN, GAMES, PENGATURAN
# ==========================================
class Ucapan(TimestampedRecord):
    sender: str = Field(alias='from')
    pesan: str


class UcapanUltah(StoredRecord):
    uid: str
    tanggal_lahir: str = ''
    ucapan: Dict[str, Ucapan] = Field(default_factory=dict)


class Game(StoredRecord):
    id: str
    judul: str
    link: str


class Pengaturan(StoredRecord):
    nama_kelas: str
    warna_tema: str
    versi_aplikasi: str


# ==========================================
# 6. DECODE
# ==========================================
@dataclass(frozen=True)
class Ok:
    record: Any


@dataclass(frozen=True)
class Invalid:
    reason: str


def decode(schema, data, **extra):
    """Validasi data mentah dari store; ``extra`` untuk field dari key (mis. id)."""
    if not isinstance(data, dict):
        return Invalid(f"{schema.__name__}: data bukan objek ({type(data).__name__})")

    payload = dict(data)
    payload.update(extra)
    try:
        return Ok(schema.model_validate(payload))
    except ValidationError as exc:
        first = exc.errors()[0]
        location = '.'.join(str(part) for part in first.get('loc', ())) or '-'
        return Invalid(f"{schema.__name__}.{location}: {first.get('msg')}")
