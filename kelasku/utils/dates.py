from datetime import date, datetime, timezone

# Index = date.weekday() (Senin = 0)
DAY_KEYS = ['senin', 'selasa', 'rabu', 'kamis', 'jumat', 'sabtu', 'minggu']

DAY_NAMES = {
    'senin': 'Senin',
    'selasa': 'Selasa',
    'rabu': 'Rabu',
    'kamis': 'Kamis',
    'jumat': 'Jumat',
    'sabtu': 'Sabtu',
    'minggu': 'Minggu',
}

MONTH_NAMES = [
    'Januari', 'Februari', 'Maret', 'April', 'Mei', 'Juni',
    'Juli', 'Agustus', 'September', 'Oktober', 'November', 'Desember',
]


def now_iso():
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def local_today():
    return datetime.now().date()


def current_month():
    """Kunci riwayat kas, format YYYY-MM."""
    return local_today().strftime('%Y-%m')


def today_key(today=None):
    today = today or local_today()
    return DAY_KEYS[today.weekday()]


def parse_birth_date(value):
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None


def to_local(ts):
    if ts.tzinfo is None:
        return ts
    return ts.astimezone()


def is_same_local_day(ts, today=None):
    today = today or local_today()
    return to_local(ts).date() == today


def _birthday_in_year(birth, year):
    # 29 Februari dirayakan 28 Februari pada tahun non-kabisat
    try:
        return birth.replace(year=year)
    except ValueError:
        return date(year, 2, 28)


def is_birthday_today(tanggal_lahir, today=None):
    birth = parse_birth_date(tanggal_lahir)
    if birth is None:
        return False
    today = today or local_today()
    return _birthday_in_year(birth, today.year) == today


def days_until_birthday(tanggal_lahir, today=None):
    """Sisa hari ke ulang tahun berikutnya (0 = hari ini)."""
    birth = parse_birth_date(tanggal_lahir)
    if birth is None:
        return None
    today = today or local_today()
    upcoming = _birthday_in_year(birth, today.year)
    if upcoming < today:
        upcoming = _birthday_in_year(birth, today.year + 1)
    return (upcoming - today).days


def days_since_birthday(tanggal_lahir, today=None):
    """Jumlah hari sejak ulang tahun terakhir (0 = hari ini)."""
    birth = parse_birth_date(tanggal_lahir)
    if birth is None:
        return None
    today = today or local_today()
    last = _birthday_in_year(birth, today.year)
    if last > today:
        last = _birthday_in_year(birth, today.year - 1)
    return (today - last).days


def is_birthday_this_week(tanggal_lahir, today=None):
    days = days_until_birthday(tanggal_lahir, today)
    return days is not None and days <= 7


def calculate_age(tanggal_lahir, today=None):
    birth = parse_birth_date(tanggal_lahir)
    if birth is None:
        return None
    today = today or local_today()
    age = today.year - birth.year
    if today < _birthday_in_year(birth, today.year):
        age -= 1
    return age


def birthday_status(tanggal_lahir, today=None):
    days = days_until_birthday(tanggal_lahir, today)
    if days is None:
        return None
    if days == 0:
        return '🎉 Selamat ulang tahun!'
    if days == 1:
        return '🎂 Besok ulang tahun!'
    if 0 < days <= 7:
        return f'🎈 {days} hari lagi ulang tahun'
    since = days_since_birthday(tanggal_lahir, today)
    if 0 < since <= 7:
        return f'🎁 Baru saja ulang tahun {since} hari lalu'
    return None


def format_tanggal(value, with_year=True):
    parsed = parse_birth_date(value)
    if parsed is None:
        return '-'
    text = f"{parsed.day} {MONTH_NAMES[parsed.month - 1]}"
    return f"{text} {parsed.year}" if with_year else text


def format_waktu(ts, today=None):
    """Jam saja untuk hari ini, tanggal + jam untuk hari lain."""
    local = to_local(ts)
    today = today or local_today()
    if local.date() == today:
        return local.strftime('%H.%M')
    return f"{local.day} {MONTH_NAMES[local.month - 1][:3]} {local.year}, {local.strftime('%H.%M')}"

