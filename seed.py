from datetime import date

from kelasku import create_app
from kelasku.extensions import db, store
from kelasku.schemas import PR, Chat, Diskusi, Info, KasStatus, Pengaturan, Priority, UserRole
from kelasku.services.account_service import AccountService
from kelasku.services.kas_service import KasService
from kelasku.utils.dates import now_iso

app = create_app()

with app.app_context():
    print("🧹 Menghapus database lama...")
    db.drop_all()

    print("🏗️ Membuat tabel database baru...")
    db.create_all()

    # ============================================
    # 1. PENGATURAN KELAS
    # ============================================
    print("⚙️  Menyimpan pengaturan kelas...")
    pengaturan = Pengaturan(
        nama_kelas=app.config['DEFAULT_KELAS'],
        warna_tema=app.config['DEFAULT_WARNA_TEMA'],
        versi_aplikasi=app.config['DEFAULT_VERSI_APLIKASI'],
    )
    store.set('pengaturan', pengaturan.to_store())
    kelas = pengaturan.nama_kelas

    # ============================================
    # 2. ANGGOTA KELAS
    # ============================================
    print("👤 Membuat anggota kelas...")
    today = date.today()
    # Satu anggota berulang tahun hari ini agar halaman ucapan terisi (2008 tahun kabisat)
    ultah_hari_ini = date(2008, today.month, today.day).isoformat()

    members = [
        ('Admin Kelas', 'admin@kelas.id', UserRole.MURID, True, '2008-01-15'),
        ('Andi Pratama', 'ketua@kelas.id', UserRole.KETUA_KELAS, False, '2008-03-02'),
        ('Budi Santoso', 'wakil@kelas.id', UserRole.WAKIL_KETUA, False, '2008-07-21'),
        ('Citra Lestari', 'bendahara@kelas.id', UserRole.BENDAHARA, False, '2008-11-09'),
        ('Dewi Anggraini', 'sekretaris@kelas.id', UserRole.SEKRETARIS, False, '2008-05-30'),
        ('Eko Saputra', 'kebersihan@kelas.id', UserRole.SEKSI_KEBERSIHAN, False, '2008-09-12'),
        ('Fajar Nugroho', 'keamanan@kelas.id', UserRole.SEKSI_KEAMANAN, False, '2008-12-25'),
        ('Gita Permata', 'gita@kelas.id', UserRole.MURID, False, ultah_hari_ini),
        ('Hadi Wijaya', 'hadi@kelas.id', UserRole.MURID, False, '2008-02-29'),
    ]

    users = []
    for nama, email, role, is_admin, tanggal_lahir in members:
        users.append(AccountService.create_member(
            email=email,
            password='kelas123',
            nama=nama,
            kelas=kelas,
            tanggal_lahir=tanggal_lahir,
            role=role,
            is_admin=is_admin,
        ))
    uid = {user.email: user.uid for user in users}

    # ============================================
    # 3. JADWAL & PIKET
    # ============================================
    print("📚 Mengisi jadwal pelajaran & piket...")
    store.set('jadwal/pelajaran', {
        'senin': ['Upacara', 'Matematika', 'Bahasa Indonesia', 'Fisika'],
        'selasa': ['Bahasa Inggris', 'Kimia', 'PJOK'],
        'rabu': ['Matematika', 'Biologi', 'Sejarah'],
        'kamis': ['Fisika', 'Seni Budaya', 'PKn'],
        'jumat': ['Bahasa Indonesia', 'Pendidikan Agama'],
        'sabtu': ['Pramuka'],
    })
    murid = [user.uid for user in users]
    store.set('jadwal/piket', {
        day: murid[index::6] for index, day in enumerate(['senin', 'selasa', 'rabu', 'kamis', 'jumat', 'sabtu'])
    })

    # ============================================
    # 4. KAS
    # ============================================
    print("💰 Mencatat pembayaran kas...")
    for email in ['ketua@kelas.id', 'wakil@kelas.id', 'bendahara@kelas.id', 'gita@kelas.id']:
        KasService.record_payment(uid[email], 10000, KasStatus.SUDAH.value)

    # ============================================
    # 5. PR, INFO, CHAT, DISKUSI, GAMES
    # ============================================
    print("📝 Membuat konten contoh...")
    sekretaris = uid['sekretaris@kelas.id']
    ketua = uid['ketua@kelas.id']

    for judul, isi, priority in [
        ('Latihan Soal Integral', 'Kerjakan buku paket hal. 45 no. 1-10', Priority.URGENT),
        ('Ringkasan Bab 3 Biologi', 'Ditulis tangan, dikumpulkan Rabu', Priority.NORMAL),
        ('Baca Cerpen', 'Pilih satu cerpen bebas', Priority.RINGAN),
    ]:
        pr = PR(id='-', judul=judul, isi=isi, pengirim=sekretaris, priority=priority, timestamp=now_iso())
        store.push('pr', pr.to_store(exclude={'id'}))

    info = Info(id='-', judul='Class Meeting', isi='Class meeting dimulai Senin depan.', pengirim=ketua,
                pin=True, timestamp=now_iso())
    store.push('info', info.to_store(exclude={'id'}))

    chat = Chat(id='-', sender=ketua, message='Selamat datang di grup kelas! 👋', timestamp=now_iso())
    store.push('chat', chat.to_store(exclude={'id'}))

    topic = Diskusi(id='-', judul='Ide kegiatan akhir semester', dibuat_oleh=ketua, timestamp=now_iso())
    store.push('diskusi', topic.to_store(exclude={'id', 'isi'}))

    store.push('games', {'judul': 'Kahoot', 'link': 'https://kahoot.it'})

    print("✅ Seed selesai. Login: admin@kelas.id / kelas123")
