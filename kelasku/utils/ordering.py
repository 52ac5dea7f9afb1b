from kelasku.schemas import Priority
from kelasku.utils.dates import parse_birth_date

PRIORITY_RANK = {
    Priority.URGENT: 3,
    Priority.NORMAL: 2,
    Priority.RINGAN: 1,
}


def sort_chats(chats):
    return sorted(chats, key=lambda chat: chat.timestamp)


def sort_diskusi(threads):
    return sorted(threads, key=lambda thread: thread.timestamp, reverse=True)


def sort_info(items):
    # Pin dulu, lalu terbaru di dalam masing-masing kelompok
    return sorted(items, key=lambda info: (info.pin, info.timestamp), reverse=True)


def sort_pr(tasks):
    return sorted(tasks, key=lambda pr: (PRIORITY_RANK[pr.priority], pr.timestamp), reverse=True)


def sort_users(users):
    return sorted(users, key=lambda user: (user.nama.casefold(), user.nama))


def sort_by_birthday(users):
    dated = [(parse_birth_date(user.tanggal_lahir), user) for user in users]
    dated = [(birth, user) for birth, user in dated if birth]
    dated.sort(key=lambda pair: (pair[0].month, pair[0].day, pair[1].nama.casefold()))
    return [user for _, user in dated]


def sorted_replies(diskusi):
    return sorted(diskusi.isi.items(), key=lambda item: item[1].timestamp)


def latest_reply(diskusi):
    if not diskusi.isi:
        return None
    return max(diskusi.isi.values(), key=lambda reply: reply.timestamp)


def sorted_ucapan(ultah):
    if ultah is None:
        return []
    return sorted(ultah.ucapan.items(), key=lambda item: item[1].timestamp, reverse=True)
