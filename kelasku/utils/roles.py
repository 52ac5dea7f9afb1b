from kelasku.schemas import UserRole


ROLE_PRIORITY = [
    UserRole.ADMIN,
    UserRole.KETUA_KELAS,
    UserRole.WAKIL_KETUA,
    UserRole.SEKRETARIS,
    UserRole.BENDAHARA,
    UserRole.SEKSI_KEBERSIHAN,
    UserRole.SEKSI_KEAMANAN,
    UserRole.MURID,
]

ROLE_LABELS = {
    UserRole.ADMIN: 'Admin',
    UserRole.KETUA_KELAS: 'Ketua Kelas',
    UserRole.WAKIL_KETUA: 'Wakil Ketua',
    UserRole.BENDAHARA: 'Bendahara',
    UserRole.SEKRETARIS: 'Sekretaris',
    UserRole.SEKSI_KEBERSIHAN: 'Seksi Kebersihan',
    UserRole.SEKSI_KEAMANAN: 'Seksi Keamanan',
    UserRole.MURID: 'Murid',
}

# Ditampilkan di halaman profil
ROLE_DUTIES = {
    UserRole.KETUA_KELAS: [
        'Memimpin dan mengkoordinasi kegiatan kelas',
        'Mengelola PR, info, games, dan kas kelas',
        'Mem-pin info dan diskusi penting',
    ],
    UserRole.WAKIL_KETUA: [
        'Membantu ketua kelas',
        'Mengelola jadwal pelajaran',
        'Membuat PR dan info kelas',
    ],
    UserRole.BENDAHARA: [
        'Mengelola kas kelas',
        'Mencatat pembayaran setiap siswa',
    ],
    UserRole.SEKRETARIS: [
        'Membuat PR dan tugas',
        'Membuat info dan pengumuman kelas',
    ],
    UserRole.SEKSI_KEBERSIHAN: [
        'Mengatur jadwal piket kelas',
        'Menjaga kebersihan kelas',
    ],
    UserRole.SEKSI_KEAMANAN: [
        'Menjaga ketertiban dan keamanan kelas',
    ],
    UserRole.MURID: [
        'Mengikuti kegiatan kelas',
        'Berpartisipasi di chat dan diskusi',
    ],
    UserRole.ADMIN: [
        'Mengelola seluruh fitur aplikasi kelas',
    ],
}


def parse_role(raw):
    if not raw:
        return None

    if isinstance(raw, UserRole):
        return raw

    if isinstance(raw, str):
        normalized = raw.strip()
        if not normalized:
            return None

        try:
            return UserRole[normalized.upper()]
        except KeyError:
            pass

        for role in UserRole:
            if normalized.lower() == role.value:
                return role

    return None


def role_label(role):
    parsed = parse_role(role)
    if not parsed:
        return '-'
    return ROLE_LABELS.get(parsed, parsed.value.replace('_', ' ').title())


def role_duties(role):
    parsed = parse_role(role)
    return ROLE_DUTIES.get(parsed, [])


def role_choices():
    return [(role.value, ROLE_LABELS[role]) for role in ROLE_PRIORITY]


def is_pengurus(user):
    # Pengurus: bukan murid dan bukan role 'admin'
    return user.role not in (UserRole.MURID, UserRole.ADMIN)
