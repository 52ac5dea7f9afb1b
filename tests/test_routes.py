import io
from datetime import date

import pytest

from kelasku.schemas import UserRole


@pytest.fixture
def as_member(client, make_member, login):
    """Buat anggota dengan role tertentu lalu login sebagai dia."""
    def _as(role=UserRole.MURID, is_admin=False, **kwargs):
        client.post('/auth/logout')
        user = make_member(role=role, is_admin=is_admin, **kwargs)
        login(user)
        return user

    return _as


def today_birthday():
    today = date.today()
    return date(2008, today.month, today.day).isoformat()


# ==========================================
# DASHBOARD & PROFIL
# ==========================================
def test_dashboard_renders(client, as_member):
    as_member(nama='Andi')

    response = client.get('/dashboard')

    assert response.status_code == 200
    assert b'Andi' in response.data


def test_index_redirects_to_dashboard(client):
    response = client.get('/')

    assert response.headers['Location'].endswith('/dashboard')


def test_profile_update(client, as_member, read):
    user = as_member(nama='Andi')

    response = client.post('/profile', data={'nama': 'Andi Pratama', 'tanggal_lahir': '2008-03-02'})

    assert response.status_code == 302
    stored = read(f'users/{user.uid}')
    assert stored['nama'] == 'Andi Pratama'
    assert stored['tanggal_lahir'] == '2008-03-02'
    assert client.get('/profile').status_code == 200


# ==========================================
# JADWAL & PIKET
# ==========================================
def test_murid_cannot_edit_jadwal(client, as_member):
    as_member(UserRole.MURID)

    assert client.post('/jadwal/edit', data={'pelajaran_senin': 'Matematika'}).status_code == 403


def test_edit_jadwal_one_subject_per_line(client, as_member, read):
    as_member(UserRole.WAKIL_KETUA)

    client.post('/jadwal/edit', data={'pelajaran_senin': 'Matematika\n\n  Fisika  \n'})

    assert read('jadwal/pelajaran') == {'senin': ['Matematika', 'Fisika']}
    assert client.get('/jadwal').status_code == 200


def test_edit_piket_dedupes_and_drops_unknown(client, as_member, make_member, read):
    andi = make_member('Andi')
    as_member(UserRole.SEKSI_KEBERSIHAN)

    client.post('/piket/edit', data={'piket_senin': [andi.uid, andi.uid, 'hantu']})

    assert read('jadwal/piket') == {'senin': [andi.uid]}
    response = client.get('/piket')
    assert response.status_code == 200
    assert b'Andi' in response.data


# ==========================================
# KAS
# ==========================================
def test_record_payment(client, as_member, make_member, read):
    andi = make_member('Andi')
    as_member(UserRole.BENDAHARA)

    client.post(f'/kas/{andi.uid}/bayar', data={'amount': '10000', 'status': 'sudah'})
    client.post(f'/kas/{andi.uid}/bayar', data={'amount': '5000', 'status': 'sudah'})

    kas = read(f'kas/{andi.uid}')
    assert kas['total'] == 15000
    assert sum(kas['riwayat'].values()) == 15000
    assert kas['status'] == 'sudah'


def test_murid_cannot_record_payment(client, as_member, make_member):
    andi = make_member('Andi')
    as_member(UserRole.MURID)

    response = client.post(f'/kas/{andi.uid}/bayar', data={'amount': '10000', 'status': 'sudah'})

    assert response.status_code == 403


def test_kas_page_creates_missing_records(app, client, as_member, read):
    as_member(nama='Andi')
    with app.app_context():
        from kelasku.extensions import store
        store.set('users/tanpa-kas', {
            'uid': 'tanpa-kas', 'nama': 'Baru', 'email': 'baru@kelas.id', 'kelas': 'x', 'role': 'murid',
        })

    response = client.get('/kas/')

    assert response.status_code == 200
    assert read('kas/tanpa-kas') == {'uid': 'tanpa-kas', 'total': 0, 'status': 'belum'}


# ==========================================
# CHAT
# ==========================================
def test_send_chat(client, as_member, read):
    user = as_member(nama='Andi')

    client.post('/chat/kirim', data={'message': 'Halo semua'})

    messages = list(read('chat').values())
    assert messages[0]['from'] == user.uid
    assert messages[0]['message'] == 'Halo semua'
    assert b'Halo semua' in client.get('/chat/').data


def test_empty_chat_is_rejected(client, as_member, read):
    as_member()

    client.post('/chat/kirim', data={'message': ''})

    assert read('chat') is None


def test_chat_payload_unknown_sender():
    from conftest import ts
    from kelasku.routes.chat import chat_payload
    from kelasku.schemas import Chat

    payload = chat_payload([Chat(id='c1', sender='hilang', message='halo', timestamp=ts())], {})

    assert payload[0]['nama'] == 'Unknown'
    assert payload[0]['from'] == 'hilang'


# ==========================================
# DISKUSI
# ==========================================
def test_diskusi_topic_and_reply(client, as_member, read):
    as_member(nama='Andi')

    response = client.post('/diskusi/buat', data={'judul': 'Study tour'})
    diskusi_id = response.headers['Location'].rsplit('/', 1)[-1]
    client.post(f'/diskusi/{diskusi_id}/balas', data={'pesan': 'Ke Bandung saja'})
    client.post(f'/diskusi/{diskusi_id}/balas', data={'pesan': 'Setuju'})

    topic = read(f'diskusi/{diskusi_id}')
    assert topic['judul'] == 'Study tour'
    assert [reply['pesan'] for _, reply in sorted(topic['isi'].items())] == ['Ke Bandung saja', 'Setuju']

    page = client.get(f'/diskusi/{diskusi_id}')
    assert page.status_code == 200
    assert b'Setuju' in page.data
    assert client.get('/diskusi/').status_code == 200


def test_reply_to_missing_topic_is_404(client, as_member):
    as_member()

    assert client.post('/diskusi/tidak-ada/balas', data={'pesan': 'halo'}).status_code == 404


def test_pin_diskusi_requires_capability(client, as_member, read):
    as_member(UserRole.MURID)
    response = client.post('/diskusi/buat', data={'judul': 'Topik'})
    diskusi_id = response.headers['Location'].rsplit('/', 1)[-1]

    assert client.post(f'/diskusi/{diskusi_id}/pin').status_code == 403

    as_member(UserRole.WAKIL_KETUA)
    client.post(f'/diskusi/{diskusi_id}/pin')
    assert read(f'diskusi/{diskusi_id}/pin') is True


# ==========================================
# PR & INFO
# ==========================================
def test_murid_cannot_create_pr(client, as_member, read):
    as_member(UserRole.MURID)

    response = client.post('/pr/buat', data={'judul': 'PR', 'isi': 'x', 'priority': 'urgent'})

    assert response.status_code == 403
    assert read('pr') is None


def test_create_and_delete_pr(client, as_member, read):
    as_member(UserRole.SEKRETARIS)
    client.post('/pr/buat', data={'judul': 'Integral', 'isi': 'Hal. 45', 'priority': 'urgent'})

    pr_id, pr = next(iter(read('pr').items()))
    assert pr['priority'] == 'urgent'
    assert client.get('/pr/').status_code == 200

    # Sekretaris boleh membuat, tidak boleh menghapus
    assert client.post(f'/pr/{pr_id}/hapus').status_code == 403

    as_member(UserRole.KETUA_KELAS)
    client.post(f'/pr/{pr_id}/hapus')
    assert read('pr') is None


def test_info_pin_toggle_twice(client, as_member, read):
    as_member(UserRole.KETUA_KELAS)
    client.post('/info/buat', data={'judul': 'Class meeting', 'isi': 'Senin depan'})
    info_id = next(iter(read('info')))

    client.post(f'/info/{info_id}/pin')
    assert read(f'info/{info_id}/pin') is True

    client.post(f'/info/{info_id}/pin')
    assert read(f'info/{info_id}/pin') is False
    assert client.get('/info/').status_code == 200


def test_toggle_pin_unknown_info_is_404(client, as_member):
    as_member(UserRole.KETUA_KELAS)

    assert client.post('/info/tidak-ada/pin').status_code == 404


# ==========================================
# GAMES
# ==========================================
def test_game_link_must_be_http(client, as_member, read):
    as_member(UserRole.KETUA_KELAS)

    client.post('/games/tambah', data={'judul': 'Aneh', 'link': 'javascript:alert(1)'})
    assert read('games') is None

    client.post('/games/tambah', data={'judul': 'Kahoot', 'link': 'https://kahoot.it'})
    assert [game['judul'] for game in read('games').values()] == ['Kahoot']
    assert b'Kahoot' in client.get('/games/').data


# ==========================================
# UCAPAN ULTAH
# ==========================================
def test_send_ucapan_on_birthday(client, as_member, make_member, read):
    gita = make_member('Gita', tanggal_lahir=today_birthday())
    sender = as_member(nama='Andi')

    client.post(f'/ucapan-ultah/{gita.uid}/kirim', data={'pesan': 'Selamat ulang tahun!'})

    ultah = read(f'ultah/{gita.uid}')
    assert ultah['uid'] == gita.uid
    assert ultah['tanggal_lahir'] == gita.tanggal_lahir
    ucapan = list(ultah['ucapan'].values())
    assert ucapan[0]['from'] == sender.uid

    page = client.get('/ucapan-ultah/')
    assert page.status_code == 200
    assert b'Selamat ulang tahun!' in page.data


def test_ucapan_rejected_when_birthday_far(client, as_member, make_member, read):
    # Enam bulan dari sekarang
    far = date(2008, (date.today().month + 5) % 12 + 1, 1).isoformat()
    budi = make_member('Budi', tanggal_lahir=far)
    as_member()

    client.post(f'/ucapan-ultah/{budi.uid}/kirim', data={'pesan': 'Kecepetan'})

    assert read(f'ultah/{budi.uid}') is None


# ==========================================
# ADMIN
# ==========================================
def test_admin_panel_requires_is_admin(client, as_member):
    as_member(UserRole.ADMIN)
    assert client.get('/admin/users').status_code == 403

    as_member(UserRole.MURID, is_admin=True)
    assert client.get('/admin/users').status_code == 200


def test_admin_creates_and_edits_user(client, as_member, read):
    as_member(is_admin=True)

    client.post('/admin/users/tambah', data={
        'nama': 'Citra',
        'email': 'citra@kelas.id',
        'password': 'rahasia123',
        'kelas': '12 C Teknik',
        'role': 'bendahara',
    })
    uid, citra = next((uid, u) for uid, u in read('users').items() if u['nama'] == 'Citra')
    assert citra['role'] == 'bendahara'
    assert read(f'kas/{uid}')['total'] == 0

    client.post(f'/admin/users/{uid}/edit', data={'nama': 'Citra L.', 'role': 'sekretaris', 'is_admin': 'y'})
    citra = read(f'users/{uid}')
    assert (citra['nama'], citra['role'], citra['isAdmin']) == ('Citra L.', 'sekretaris', True)


def test_admin_cannot_delete_self(client, as_member, make_member, read):
    admin = as_member(is_admin=True)
    other = make_member('Budi')

    client.post(f'/admin/users/{admin.uid}/hapus')
    assert read(f'users/{admin.uid}') is not None

    client.post(f'/admin/users/{other.uid}/hapus')
    assert read(f'users/{other.uid}') is None
    assert read(f'kas/{other.uid}') is None


def test_admin_import_csv(client, as_member, read):
    as_member(is_admin=True, email='admin@kelas.id')
    content = (
        'nama,email,password,tanggal_lahir,role\n'
        'Dewi,dewi@kelas.id,rahasia123,2008-05-30,\n'
        'Eko,eko@kelas.id,rahasia123,,bendahara\n'
        'Duplikat,admin@kelas.id,rahasia123,,\n'
        'Tanpa Password,tp@kelas.id,,,\n'
        'Role Aneh,aneh@kelas.id,rahasia123,,presiden\n'
    ).encode('utf-8')

    response = client.post(
        '/admin/users/import',
        data={'file': (io.BytesIO(content), 'anggota.csv')},
        content_type='multipart/form-data',
        follow_redirects=True,
    )

    assert b'Berhasil: 2, Dilewati: 3' in response.data
    users = {u['email']: u for u in read('users').values()}
    assert users['dewi@kelas.id']['role'] == 'murid'
    assert users['dewi@kelas.id']['tanggal_lahir'] == '2008-05-30'
    assert users['eko@kelas.id']['role'] == 'bendahara'
    assert 'aneh@kelas.id' not in users


def test_admin_import_rejects_non_utf8_csv(client, as_member, read):
    as_member(is_admin=True, email='admin@kelas.id')
    content = 'nama,email,password\nJosé,jose@kelas.id,rahasia123\n'.encode('latin-1')

    response = client.post(
        '/admin/users/import',
        data={'file': (io.BytesIO(content), 'anggota.csv')},
        content_type='multipart/form-data',
        follow_redirects=True,
    )

    assert response.status_code == 200
    assert b'File CSV tidak bisa dibaca' in response.data
    assert len(read('users')) == 1


def test_pengaturan_changes_theme(client, as_member, read):
    as_member(is_admin=True)

    client.post('/admin/pengaturan', data={'nama_kelas': '11 B', 'warna_tema': '#FF0000', 'versi_aplikasi': 'v2'})
    assert read('pengaturan') == {'nama_kelas': '11 B', 'warna_tema': '#FF0000', 'versi_aplikasi': 'v2'}

    client.post('/admin/pengaturan', data={'nama_kelas': '11 B', 'warna_tema': 'merah', 'versi_aplikasi': 'v2'})
    assert read('pengaturan/warna_tema') == '#FF0000'
    assert b'11 B' in client.get('/dashboard').data


# ==========================================
# ID TIDAK VALID
# ==========================================
@pytest.mark.parametrize('method, url', [
    ('get', '/diskusi/a.b'),
    ('post', '/diskusi/a.b/balas'),
    ('post', '/diskusi/x$y/pin'),
    ('post', '/info/a[0]/pin'),
    ('post', '/info/a.b/hapus'),
    ('post', '/pr/a.b/hapus'),
    ('post', '/games/a.b/hapus'),
    ('get', '/admin/users/a.b/edit'),
    ('post', '/admin/users/a.b/hapus'),
])
def test_invalid_record_id_is_404(client, as_member, method, url):
    as_member(UserRole.KETUA_KELAS, is_admin=True)

    response = getattr(client, method)(url, data={'pesan': 'halo'})

    assert response.status_code == 404
