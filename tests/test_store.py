import threading
import time

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from config import TestConfig
from kelasku import create_app
from kelasku.extensions import db, store
from kelasku.store import Snapshot, StoreError, StoreKeyError, prune, split_path
from kelasku.utils.ids import PUSH_CHARS, generate_push_id


# ==========================================
# PATH & PRUNE
# ==========================================
def test_split_path_rejects_bad_segments():
    assert split_path('/users/abc/') == ['users', 'abc']
    assert split_path('') == []
    with pytest.raises(ValueError):
        split_path('users//abc')
    with pytest.raises(ValueError):
        split_path('users/a.b')
    with pytest.raises(StoreKeyError):
        split_path('chat/$x')


def test_prune_drops_empty_nodes():
    assert prune({'a': None, 'b': {}, 'c': [], 'd': {'e': None}}) is None
    assert prune({'a': 0, 'b': False, 'c': ''}) == {'a': 0, 'b': False, 'c': ''}
    assert prune([None, 1, {}]) == [1]


def test_snapshot_children_sorted_by_key():
    snap = Snapshot('pr', {'b': 2, 'a': 1})
    assert [child.key for child in snap.children()] == ['a', 'b']
    assert snap.child('a').val() == 1
    assert not snap.child('zzz').exists()


# ==========================================
# BACA / TULIS
# ==========================================
def test_set_and_get_nested(ctx):
    store.set('users/u1', {'nama': 'Andi', 'role': 'murid'})

    assert store.get('users/u1/nama').val() == 'Andi'
    assert store.get('users').val() == {'u1': {'nama': 'Andi', 'role': 'murid'}}
    assert not store.get('users/u2').exists()


def test_val_is_a_copy(ctx):
    store.set('jadwal/pelajaran', {'senin': ['Matematika']})
    value = store.get('jadwal/pelajaran').val()
    value['senin'].append('Fisika')

    assert store.get('jadwal/pelajaran/senin').val() == ['Matematika']


def test_update_patches_children_only(ctx):
    store.set('info/i1', {'judul': 'A', 'pin': False})
    store.update('info/i1', {'pin': True})

    assert store.get('info/i1').val() == {'judul': 'A', 'pin': True}


def test_update_multi_root(ctx):
    store.update('', {'users/u1': {'nama': 'Andi'}, 'kas/u1': {'uid': 'u1', 'total': 0}})

    assert store.get('users/u1/nama').val() == 'Andi'
    assert store.get('kas/u1/total').val() == 0


def test_remove_and_none_prune(ctx):
    store.set('games/g1', {'judul': 'Kahoot'})
    store.remove('games/g1')

    assert not store.get('games').exists()

    store.set('kas/u1', {'uid': 'u1', 'riwayat': {}})
    assert store.get('kas/u1').val() == {'uid': 'u1'}


def test_push_returns_chronological_keys(ctx):
    keys = [store.push('chat', {'message': str(n)}) for n in range(5)]

    assert keys == sorted(keys)
    assert [child.key for child in store.get('chat').children()] == keys


def test_cannot_overwrite_whole_tree(ctx):
    with pytest.raises(ValueError):
        store.set('', {'users': {}})


def test_write_failure_raises_store_error(ctx, monkeypatch):
    def broken_commit():
        raise OperationalError('COMMIT', {}, Exception('database terkunci'))

    monkeypatch.setattr(db.session, 'commit', broken_commit)

    with pytest.raises(StoreError):
        store.set('pr/p1', {'judul': 'x'})

    monkeypatch.undo()
    assert not store.get('pr/p1').exists()


# ==========================================
# LANGGANAN
# ==========================================
def test_subscribe_delivers_immediately_and_on_related_writes(ctx):
    seen = []
    sub = store.subscribe('diskusi/d1', lambda snap: seen.append(snap.val()))

    store.set('diskusi/d1', {'judul': 'Topik'})
    store.push('diskusi/d1/isi', {'pesan': 'halo'})
    store.set('diskusi/d2', {'judul': 'Lain'})
    store.remove('diskusi')

    assert seen[0] is None
    assert seen[1] == {'judul': 'Topik'}
    assert len(seen[2]['isi']) == 1
    # d2 tidak terkait, penghapusan akar terkait
    assert len(seen) == 4
    assert seen[3] is None
    sub.close()


def test_closed_subscription_gets_nothing(ctx):
    seen = []
    before = store.listener_count()
    sub = store.subscribe('chat', seen.append)
    sub.close()
    sub.close()

    store.push('chat', {'message': 'x'})

    assert len(seen) == 1
    assert store.listener_count() == before


def test_broken_listener_does_not_fail_write(ctx):
    def explode(snapshot):
        if snapshot.exists():
            raise RuntimeError('listener rusak')

    with store.subscribe('pr', explode):
        store.set('pr/p1', {'judul': 'aman'})

    assert store.get('pr/p1/judul').val() == 'aman'


# ==========================================
# PUSH ID
# ==========================================
def test_push_id_shape_and_order():
    first = generate_push_id(now_ms=1700000000000)
    second = generate_push_id(now_ms=1700000000000)
    later = generate_push_id(now_ms=1700000000001)

    assert len(first) == 20
    assert set(first) <= set(PUSH_CHARS)
    assert first < second < later


# ==========================================
# PENULISAN BERSAMAAN
# ==========================================
@pytest.fixture
def file_app(tmp_path):
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'kelasku.db'}"

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


def test_concurrent_pushes_keep_every_child(file_app, monkeypatch):
    with file_app.app_context():
        store.set('chat/seed', {'message': 'awal'})

    original_root_node = store._root_node

    def slow_root_node(key, for_update=False):
        node = original_root_node(key, for_update)
        # Perlebar jarak antara baca dan commit
        time.sleep(0.01)
        return node

    monkeypatch.setattr(store, '_root_node', slow_root_node)

    barrier = threading.Barrier(2)
    errors = []

    def writer(n):
        try:
            with file_app.app_context():
                barrier.wait()
                for i in range(5):
                    store.push('chat', {'message': f'{n}-{i}'})
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    with file_app.app_context():
        messages = [child.val()['message'] for child in store.get('chat').children()]
    assert len(messages) == 11
    assert {'0-4', '1-4', 'awal'} <= set(messages)


def test_write_retries_when_root_row_created_concurrently(ctx, monkeypatch):
    original_commit = store._commit
    calls = []

    def racing_commit(changes):
        calls.append(changes)
        if len(calls) == 1:
            raise IntegrityError('INSERT', {}, Exception('UNIQUE constraint failed: store_nodes.key'))
        original_commit(changes)

    monkeypatch.setattr(store, '_commit', racing_commit)

    store.push('games', {'judul': 'Kahoot', 'link': 'https://kahoot.it'})

    assert len(calls) == 2
    assert len(store.get('games').val()) == 1
