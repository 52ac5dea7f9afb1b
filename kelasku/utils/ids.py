import secrets
import threading
import time

# Urutan karakter mengikuti ASCII, jadi urutan string == urutan waktu
PUSH_CHARS = '-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz'

_lock = threading.Lock()
_last_push_ms = 0
_last_rand = [0] * 12


def generate_push_id(now_ms=None):
    """
    ID 20 karakter: 8 karakter waktu (ms) + 12 karakter acak.
    Dalam milidetik yang sama, bagian acak dinaikkan satu agar tetap urut
    dan tidak bentrok.
    """
    global _last_push_ms
    now = int(now_ms if now_ms is not None else time.time() * 1000)

    with _lock:
        duplicate = now == _last_push_ms
        _last_push_ms = now

        time_chars = []
        value = now
        for _ in range(8):
            time_chars.append(PUSH_CHARS[value % 64])
            value //= 64
        prefix = ''.join(reversed(time_chars))

        if not duplicate:
            for i in range(12):
                _last_rand[i] = secrets.randbelow(64)
        else:
            i = 11
            while i >= 0 and _last_rand[i] == 63:
                _last_rand[i] = 0
                i -= 1
            if i >= 0:
                _last_rand[i] += 1

        suffix = ''.join(PUSH_CHARS[n] for n in _last_rand)

    return prefix + suffix
