from dataclasses import dataclass, field
from typing import List

from kelasku.schemas import KasStatus, Priority
from kelasku.utils import ordering
from kelasku.utils.dates import (
    days_until_birthday,
    is_birthday_today,
    is_same_local_day,
    local_today,
    today_key,
)


@dataclass
class KasSummary:
    total: int = 0
    sudah_bayar: int = 0
    belum_bayar: int = 0
    percentage: float = 0.0


@dataclass
class DashboardStats:
    total_students: int = 0
    total_kas: int = 0
    active_pr: int = 0
    today_messages: int = 0
    sudah_bayar: int = 0
    belum_bayar: int = 0
    kas_percentage: float = 0.0
    recent_pr: List = field(default_factory=list)
    birthdays_today: List = field(default_factory=list)
    today_day: str = ''
    today_pelajaran: List = field(default_factory=list)
    today_piket: List = field(default_factory=list)


def kas_percentage(kas_records):
    records = list(kas_records)
    if not records:
        return 0.0
    sudah = sum(1 for kas in records if kas.status == KasStatus.SUDAH)
    return sudah / len(records) * 100


def kas_summary(kas_records):
    records = list(kas_records)
    return KasSummary(
        total=sum(kas.total for kas in records),
        sudah_bayar=sum(1 for kas in records if kas.status == KasStatus.SUDAH),
        belum_bayar=sum(1 for kas in records if kas.status == KasStatus.BELUM),
        percentage=kas_percentage(records),
    )


def count_today_messages(chats, today=None):
    today = today or local_today()
    return sum(1 for chat in chats if is_same_local_day(chat.timestamp, today))


def birthdays_today(users, today=None):
    return [user for user in users if is_birthday_today(user.tanggal_lahir, today)]


def upcoming_birthdays(users, today=None, days=7):
    """(user, sisa_hari) untuk ulang tahun 1..days hari ke depan, terdekat dulu."""
    upcoming = []
    for user in users:
        remaining = days_until_birthday(user.tanggal_lahir, today)
        if remaining is not None and 0 < remaining <= days:
            upcoming.append((user, remaining))
    upcoming.sort(key=lambda pair: (pair[1], pair[0].nama.casefold()))
    return upcoming


def pr_priority_stats(prs):
    stats = {priority.value: 0 for priority in Priority}
    for pr in prs:
        stats[pr.priority.value] += 1
    return stats


def resolve_piket(uids, users_map):
    # uid yang tidak dikenal dilewati
    return [users_map[uid] for uid in uids if uid in users_map]


def build_dashboard(users, kas_records, prs, chats, jadwal, today=None):
    today = today or local_today()
    users_map = {user.uid: user for user in users}
    summary = kas_summary(kas_records)
    day = today_key(today)

    return DashboardStats(
        total_students=len(users),
        total_kas=summary.total,
        active_pr=len(prs),
        today_messages=count_today_messages(chats, today),
        sudah_bayar=summary.sudah_bayar,
        belum_bayar=summary.belum_bayar,
        kas_percentage=summary.percentage,
        recent_pr=ordering.sort_pr(prs)[:3],
        birthdays_today=birthdays_today(users, today),
        today_day=day,
        today_pelajaran=list(jadwal.pelajaran.get(day, [])),
        today_piket=resolve_piket(jadwal.piket.get(day, []), users_map),
    )
