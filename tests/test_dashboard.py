from datetime import date, datetime, timezone

from conftest import ts
from kelasku.schemas import Chat, Jadwal, Kas, PR, User
from kelasku.services.dashboard import (
    birthdays_today,
    build_dashboard,
    count_today_messages,
    kas_percentage,
    kas_summary,
    pr_priority_stats,
    upcoming_birthdays,
)

TODAY = date(2026, 3, 2)  # Senin


def user(uid, nama, tanggal_lahir=''):
    return User(uid=uid, nama=nama, email=f'{uid}@kelas.id', kelas='x', role='murid', tanggal_lahir=tanggal_lahir)


def kas(uid, status, total=0):
    return Kas(uid=uid, status=status, total=total, riwayat={'2026-03': total} if total else {})


def test_kas_percentage_example():
    records = [kas(str(n), status) for n, status in enumerate(['sudah', 'sudah', 'belum', 'sudah', 'belum'])]

    assert kas_percentage(records) == 60.0


def test_kas_percentage_empty():
    assert kas_percentage([]) == 0.0


def test_kas_summary_totals():
    summary = kas_summary([kas('a', 'sudah', 10000), kas('b', 'belum'), kas('c', 'sudah', 5000)])

    assert summary.total == 15000
    assert (summary.sudah_bayar, summary.belum_bayar) == (2, 1)


def test_birthday_today_matches_month_day_any_year():
    users = [user('a', 'Andi', '2008-03-02'), user('b', 'Budi', '2008-03-03'), user('c', 'Citra')]

    assert [u.nama for u in birthdays_today(users, TODAY)] == ['Andi']


def test_upcoming_birthdays_excludes_today():
    users = [
        user('a', 'Hari Ini', '2008-03-02'),
        user('b', 'Besok', '2008-03-03'),
        user('c', 'Seminggu', '2008-03-09'),
        user('d', 'Kejauhan', '2008-03-10'),
    ]

    upcoming = upcoming_birthdays(users, TODAY)

    assert [(u.nama, days) for u, days in upcoming] == [('Besok', 1), ('Seminggu', 7)]


def test_count_today_messages_uses_local_date():
    now = datetime.now(timezone.utc)
    chats = [
        Chat(id='1', sender='a', message='x', timestamp=now),
        Chat(id='2', sender='a', message='y', timestamp=ts()),
    ]

    assert count_today_messages(chats, now.astimezone().date()) == 1


def test_pr_priority_stats():
    prs = [
        PR(id=str(n), judul='t', isi='-', pengirim='a', priority=priority, timestamp=ts(n))
        for n, priority in enumerate(['urgent', 'normal', 'urgent'])
    ]

    assert pr_priority_stats(prs) == {'urgent': 2, 'normal': 1, 'ringan': 0}


def test_build_dashboard():
    users = [user('a', 'Andi', '2007-03-02'), user('b', 'Budi')]
    prs = [
        PR(id=str(n), judul=f'pr{n}', isi='-', pengirim='a', priority=priority, timestamp=ts(n))
        for n, priority in enumerate(['ringan', 'urgent', 'normal', 'ringan'])
    ]
    jadwal = Jadwal(
        pelajaran={'senin': ['Matematika', 'Fisika']},
        piket={'senin': ['b', 'hilang', 'a']},
    )

    stats = build_dashboard(users, [kas('a', 'sudah', 20000), kas('b', 'belum')], prs, [], jadwal, today=TODAY)

    assert stats.total_students == 2
    assert stats.total_kas == 20000
    assert stats.active_pr == 4
    assert stats.kas_percentage == 50.0
    assert [pr.judul for pr in stats.recent_pr] == ['pr1', 'pr2', 'pr3']
    assert [u.nama for u in stats.birthdays_today] == ['Andi']
    assert stats.today_day == 'senin'
    assert stats.today_pelajaran == ['Matematika', 'Fisika']
    assert [u.nama for u in stats.today_piket] == ['Budi', 'Andi']


def test_upcoming_birthdays_across_new_year():
    users = [user('a', 'Awal Tahun', '2008-01-02'), user('b', 'Akhir Tahun', '2008-12-20')]

    upcoming = upcoming_birthdays(users, date(2026, 12, 28))

    assert [(u.nama, days) for u, days in upcoming] == [('Awal Tahun', 5)]


def test_leap_day_celebrant_listed_on_feb_28():
    users = [user('a', 'Kabisat', '2008-02-29')]

    assert [u.nama for u in birthdays_today(users, date(2026, 2, 28))] == ['Kabisat']
