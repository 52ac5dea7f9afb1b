"""
Langganan milik satu halaman.

Setiap halaman membuka ``LiveView``, memantau path yang dibutuhkan, lalu
menutup semuanya ketika selesai (akhir request / stream diputus).
"""


class Watch:
    """Nilai turunan dari satu path; dihitung ulang penuh di setiap snapshot."""

    def __init__(self, mapper=None, on_change=None):
        self.mapper = mapper
        self.on_change = on_change
        self.value = None
        self.updates = 0
        self.subscription = None

    def __call__(self, snapshot):
        self.value = self.mapper(snapshot) if self.mapper else snapshot.val()
        self.updates += 1
        if self.on_change is not None:
            self.on_change(self.value)


class LiveView:

    def __init__(self, store):
        self.store = store
        self.watches = []
        self.closed = False

    def watch(self, path, mapper=None, on_change=None):
        if self.closed:
            raise RuntimeError('LiveView sudah ditutup')
        watch = Watch(mapper, on_change)
        watch.subscription = self.store.subscribe(path, watch)
        self.watches.append(watch)
        return watch

    def close(self):
        for watch in self.watches:
            watch.subscription.close()
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
