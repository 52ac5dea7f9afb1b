"""Pemetaan snapshot store -> record bertipe. Record rusak dicatat lalu dianggap tidak ada."""
from flask import current_app

from kelasku.schemas import (
    DAYS, Chat, Diskusi, Game, Info, Invalid, Jadwal, Kas, Pengaturan, PR,
    UcapanUltah, User, decode,
)
from kelasku.utils import ordering


def _accept(result, path):
    if isinstance(result, Invalid):
        current_app.logger.warning("Data tidak valid di '%s' diabaikan: %s", path, result.reason)
        return None
    return result.record


def decode_one(snapshot, schema, **extra):
    if not snapshot.exists():
        return None
    return _accept(decode(schema, snapshot.val(), **extra), snapshot.path)


def decode_children(snapshot, schema, key_field=None):
    records = []
    for child in snapshot.children():
        extra = {key_field: child.key} if key_field else {}
        record = decode_one(child, schema, **extra)
        if record is not None:
            records.append(record)
    return records


# ==========================================
# USERS & KAS
# ==========================================
def user_from_snapshot(snapshot):
    return decode_one(snapshot, User)


def users_from_snapshot(snapshot):
    return ordering.sort_users(decode_children(snapshot, User))


def users_by_uid(users):
    return {user.uid: user for user in users}


def display_name(users_map, uid):
    user = users_map.get(uid)
    return user.nama if user else 'Unknown'


def kas_from_snapshot(snapshot):
    return {kas.uid: kas for kas in decode_children(snapshot, Kas)}


# ==========================================
# JADWAL
# ==========================================
def jadwal_from_snapshot(snapshot):
    jadwal = decode_one(snapshot, Jadwal) or Jadwal()
    for day in DAYS:
        jadwal.pelajaran.setdefault(day, [])
        jadwal.piket.setdefault(day, [])
    return jadwal


def piket_from_snapshot(snapshot):
    data = {'piket': snapshot.val()} if snapshot.exists() else {}
    jadwal = _accept(decode(Jadwal, data), snapshot.path) or Jadwal()
    for day in DAYS:
        jadwal.piket.setdefault(day, [])
    return jadwal.piket


# ==========================================
# PR, INFO, CHAT, DISKUSI, GAMES
# ==========================================
def prs_from_snapshot(snapshot):
    return ordering.sort_pr(decode_children(snapshot, PR, key_field='id'))


def infos_from_snapshot(snapshot):
    return ordering.sort_info(decode_children(snapshot, Info, key_field='id'))


def chats_from_snapshot(snapshot):
    return ordering.sort_chats(decode_children(snapshot, Chat, key_field='id'))


def diskusi_list_from_snapshot(snapshot):
    return ordering.sort_diskusi(decode_children(snapshot, Diskusi, key_field='id'))


def diskusi_from_snapshot(snapshot):
    return decode_one(snapshot, Diskusi, id=snapshot.key)


def games_from_snapshot(snapshot):
    return decode_children(snapshot, Game, key_field='id')


# ==========================================
# ULTAH & PENGATURAN
# ==========================================
def ultah_from_snapshot(snapshot):
    return {item.uid: item for item in decode_children(snapshot, UcapanUltah, key_field='uid')}


def default_pengaturan():
    return Pengaturan(
        nama_kelas=current_app.config.get('DEFAULT_KELAS', '12 C Teknik'),
        warna_tema=current_app.config.get('DEFAULT_WARNA_TEMA', '#1E3A8A'),
        versi_aplikasi=current_app.config.get('DEFAULT_VERSI_APLIKASI', 'v1.0.0'),
    )


def pengaturan_from_snapshot(snapshot):
    return decode_one(snapshot, Pengaturan) or default_pengaturan()
