from kelasku.extensions import store
from kelasku.schemas import Kas, KasStatus
from kelasku.services.records import decode_one
from kelasku.utils.dates import current_month


class KasService:
    @staticmethod
    def ensure_records(users, kas_map):
        """Buat kas kosong untuk user yang belum punya. Kembalikan uid yang dibuat."""
        missing = {
            user.uid: Kas(uid=user.uid).to_store()
            for user in users if user.uid not in kas_map
        }
        if missing:
            store.update('kas', missing)
        return sorted(missing)

    @staticmethod
    def apply_payment(kas, amount, status, month=None):
        # total selalu diturunkan dari riwayat
        month = month or current_month()
        riwayat = dict(kas.riwayat)
        riwayat[month] = riwayat.get(month, 0) + amount
        return Kas(
            uid=kas.uid,
            total=sum(riwayat.values()),
            status=KasStatus(status),
            riwayat=riwayat,
        )

    @staticmethod
    def record_payment(uid, amount, status, month=None):
        current = decode_one(store.get(f'kas/{uid}'), Kas) or Kas(uid=uid)
        updated = KasService.apply_payment(current, amount, status, month)
        store.set(f'kas/{uid}', updated.to_store())
        return updated
