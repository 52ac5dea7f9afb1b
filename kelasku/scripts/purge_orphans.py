import argparse
from typing import List

from kelasku import create_app
from kelasku.extensions import store
from kelasku.store import StoreError

# Koleksi yang key-nya adalah uid anggota
UID_COLLECTIONS = ('kas', 'ultah')


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Hapus data kas/ultah milik uid yang sudah tidak punya profil di users/."
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Eksekusi penghapusan. Tanpa ini hanya preview.",
    )
    return parser.parse_args()


def find_orphans() -> List[str]:
    known = set((store.get('users').val() or {}).keys())
    orphans = []
    for collection in UID_COLLECTIONS:
        for uid in sorted((store.get(collection).val() or {}).keys()):
            if uid not in known:
                orphans.append(f'{collection}/{uid}')
    return orphans


def print_preview(paths: List[str]) -> None:
    print(f"Total data yatim: {len(paths)}")
    for path in paths:
        print(f"- {path}")


def main() -> int:
    args = parse_args()
    app = create_app()

    with app.app_context():
        orphans = find_orphans()
        print_preview(orphans)

        if not orphans:
            print("Tidak ada data yatim.")
            return 0

        if not args.yes:
            print("Mode preview. Tambahkan --yes untuk menghapus.")
            return 0

        try:
            store.update('', {path: None for path in orphans})
            print("Pembersihan selesai.")
            return 0
        except StoreError as exc:
            print(f"Gagal membersihkan data: {exc}")
            return 1


if __name__ == "__main__":
    raise SystemExit(main())
