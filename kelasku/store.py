"""
Penyimpanan data kelas berbentuk pohon JSON yang dialamatkan dengan path
(``users/{uid}``, ``kas/{uid}``, ``diskusi/{id}/isi``, ...).

Setiap node akar (users, kas, jadwal, pr, ...) disimpan sebagai satu baris
``StoreNode``. Penulisan ke path mana pun = baca-ubah-tulis baris akarnya
dalam satu transaksi, lalu semua pelanggan (subscriber) path yang terkait
diberi snapshot terbaru. Penulisan diserialkan: lock proses + baris akar
dikunci (SELECT ... FOR UPDATE) sampai commit, sehingga dua penulis ke
child berbeda tidak saling menimpa. Untuk path yang sama, penulis terakhir
yang menang.
"""
import copy
import threading

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from kelasku.utils.ids import generate_push_id

INVALID_KEY_CHARS = set('.#$[]')

# Percobaan ulang bila dua penulis membuat baris akar yang sama bersamaan
WRITE_ATTEMPTS = 3


class StoreError(Exception):
    """Operasi baca/tulis ke penyimpanan gagal (database, izin, jaringan)."""


class StoreKeyError(ValueError):
    """Path berisi segmen kosong atau karakter terlarang (. # $ [ ])."""


def split_path(path):
    text = str(path or '').strip('/')
    if not text:
        return []

    segments = text.split('/')
    for segment in segments:
        if not segment or INVALID_KEY_CHARS.intersection(segment):
            raise StoreKeyError(f"Path tidak valid: {path!r}")
    return segments


def join_path(*parts):
    cleaned = [str(part).strip('/') for part in parts if part is not None]
    return '/'.join(part for part in cleaned if part)


def prune(value):
    """Buang None, dict kosong dan list kosong. Node tanpa data dianggap tidak ada."""
    if isinstance(value, dict):
        cleaned = {}
        for key, child in value.items():
            child = prune(child)
            if child is not None:
                cleaned[str(key)] = child
        return cleaned or None

    if isinstance(value, (list, tuple)):
        cleaned = [prune(child) for child in value]
        cleaned = [child for child in cleaned if child is not None]
        return cleaned or None

    return value


class Snapshot:
    """Salinan nilai sebuah path pada satu waktu."""

    def __init__(self, path, value):
        self.path = join_path(*split_path(path))
        self._value = value

    @property
    def key(self):
        if not self.path:
            return None
        return self.path.rsplit('/', 1)[-1]

    def exists(self):
        return self._value is not None

    def val(self):
        return copy.deepcopy(self._value)

    def child(self, name):
        value = self._value
        for segment in split_path(name):
            value = _descend(value, segment)
        return Snapshot(join_path(self.path, name), value)

    def children(self):
        # Urut berdasarkan key; push id berawalan waktu sehingga urut kronologis
        if isinstance(self._value, dict):
            for key in sorted(self._value):
                yield Snapshot(join_path(self.path, key), self._value[key])
        elif isinstance(self._value, list):
            for index, item in enumerate(self._value):
                yield Snapshot(join_path(self.path, str(index)), item)

    def __repr__(self):
        return f"<Snapshot {self.path or '/'} exists={self.exists()}>"


def _descend(value, segment):
    if isinstance(value, dict):
        return value.get(segment)
    if isinstance(value, list) and segment.isdigit() and int(segment) < len(value):
        return value[int(segment)]
    return None


class Subscription:
    """Handle langganan; wajib ditutup oleh pemiliknya (halaman / stream)."""

    def __init__(self, store, path, callback):
        self.store = store
        self.path = path
        self.callback = callback
        self.closed = False

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.store._remove_listener(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class RealtimeStore:

    def __init__(self, app=None, db=None, node_model=None):
        self._db = None
        self._node_model = None
        self._listeners = []
        self._lock = threading.RLock()
        if app is not None:
            self.init_app(app, db, node_model)

    def init_app(self, app, db, node_model):
        self._db = db
        self._node_model = node_model
        app.extensions['kelasku_store'] = self

    # ==========================================
    # 1. BACA
    # ==========================================
    def _root_node(self, key, for_update=False):
        query = self._node_model.query.filter_by(key=key)
        if for_update:
            # populate_existing: jangan pakai nilai lama dari identity map
            query = query.with_for_update().populate_existing()
        return query.first()

    def _read(self, segments):
        if not segments:
            nodes = self._node_model.query.all()
            return prune({node.key: copy.deepcopy(node.value) for node in nodes})

        node = self._root_node(segments[0])
        value = node.value if node else None
        for segment in segments[1:]:
            value = _descend(value, segment)
            if value is None:
                return None
        return copy.deepcopy(value)

    def get(self, path=''):
        segments = split_path(path)
        try:
            value = self._read(segments)
        except SQLAlchemyError as exc:
            raise StoreError(f"Gagal membaca '{path}'") from exc
        return Snapshot(path, value)

    # ==========================================
    # 2. TULIS
    # ==========================================
    def _apply(self, tree, segments, value):
        if not segments:
            return value

        if isinstance(tree, list):
            tree = {str(index): item for index, item in enumerate(tree)}
        tree = dict(tree) if isinstance(tree, dict) else {}

        head, rest = segments[0], segments[1:]
        tree[head] = self._apply(tree.get(head), rest, value)
        return tree

    def _commit(self, changes):
        roots = {}
        for segments, value in changes:
            key = segments[0]
            if key not in roots:
                node = self._root_node(key, for_update=True)
                roots[key] = [node, copy.deepcopy(node.value) if node else None]
            roots[key][1] = self._apply(roots[key][1], segments[1:], copy.deepcopy(value))

        for key, (node, value) in roots.items():
            value = prune(value)
            if value is None:
                if node is not None:
                    self._db.session.delete(node)
            elif node is None:
                self._db.session.add(self._node_model(key=key, value=value))
            else:
                # Objek baru agar kolom JSON terdeteksi berubah
                node.value = value

        self._db.session.commit()

    def _write(self, changes):
        if not changes:
            return

        for segments, _ in changes:
            if not segments:
                raise ValueError('Tidak boleh menimpa akar pohon data sekaligus')

        paths = [join_path(*segments) for segments, _ in changes]
        with self._lock:
            for attempt in range(1, WRITE_ATTEMPTS + 1):
                try:
                    self._commit(changes)
                    break
                except IntegrityError as exc:
                    # Baris akar baru sudah dibuat penulis lain: baca ulang lalu ulangi
                    self._db.session.rollback()
                    if attempt == WRITE_ATTEMPTS:
                        raise StoreError(f"Gagal menulis ke '{', '.join(paths)}'") from exc
                    current_app.logger.info("Konflik baris akar saat menulis %s, mencoba lagi", paths)
                except SQLAlchemyError as exc:
                    self._db.session.rollback()
                    raise StoreError(f"Gagal menulis ke '{', '.join(paths)}'") from exc

        self._notify(paths)

    def set(self, path, value):
        """Timpa seluruh nilai path. value=None berarti hapus."""
        self._write([(split_path(path), value)])

    def update(self, path, values):
        """Patch beberapa child sekaligus; key boleh berupa sub-path ('a/b')."""
        base = split_path(path)
        self._write([(base + split_path(child), value) for child, value in values.items()])

    def push(self, path, value):
        """Tambahkan child baru dengan ID kronologis, kembalikan ID-nya."""
        key = generate_push_id()
        self.set(join_path(path, key), value)
        return key

    def remove(self, path):
        self.set(path, None)

    # ==========================================
    # 3. LANGGANAN (LIVE)
    # ==========================================
    def subscribe(self, path, callback):
        """
        Callback langsung menerima snapshot saat ini, lalu dipanggil ulang
        setiap ada penulisan pada path tersebut, induknya, atau turunannya.
        """
        subscription = Subscription(self, join_path(*split_path(path)), callback)
        with self._lock:
            self._listeners.append(subscription)
        self._deliver(subscription)
        return subscription

    def listener_count(self):
        with self._lock:
            return len(self._listeners)

    def _remove_listener(self, subscription):
        with self._lock:
            if subscription in self._listeners:
                self._listeners.remove(subscription)

    @staticmethod
    def _related(a, b):
        if not a or not b or a == b:
            return True
        return a.startswith(b + '/') or b.startswith(a + '/')

    def _notify(self, paths):
        with self._lock:
            listeners = list(self._listeners)

        for subscription in listeners:
            if subscription.closed:
                continue
            if any(self._related(subscription.path, path) for path in paths):
                self._deliver(subscription)

    def _deliver(self, subscription):
        try:
            subscription.callback(self.get(subscription.path))
        except Exception:
            current_app.logger.exception("Listener '%s' gagal memproses snapshot", subscription.path)
