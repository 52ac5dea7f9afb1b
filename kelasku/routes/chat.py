import json
import queue

from flask import (
    Blueprint,
    Response,
    render_template,
    redirect,
    url_for,
    flash,
    current_app,
    stream_with_context,
)
from flask_login import login_required, current_user

from kelasku.extensions import store
from kelasku.forms import ChatForm, first_error
from kelasku.schemas import Chat
from kelasku.services import records
from kelasku.services.live import LiveView
from kelasku.store import StoreError
from kelasku.utils.dates import format_waktu, now_iso

chat_bp = Blueprint('chat', __name__)

KEEPALIVE_SECONDS = 15


def chat_payload(chats, users_map):
    """Daftar chat siap kirim ke browser (nama pengirim + jam lokal)."""
    return [
        {
            'id': chat.id,
            'from': chat.sender,
            'nama': records.display_name(users_map, chat.sender),
            'message': chat.message,
            'timestamp': chat.timestamp.isoformat(),
            'waktu': format_waktu(chat.timestamp),
        }
        for chat in chats
    ]


@chat_bp.route('/')
@login_required
def index():
    with LiveView(store) as view:
        chats = view.watch('chat', records.chats_from_snapshot).value
        users = view.watch('users', records.users_from_snapshot).value

    return render_template(
        'chat.html',
        messages=chat_payload(chats, records.users_by_uid(users)),
        form=ChatForm(),
    )


@chat_bp.route('/kirim', methods=['POST'])
@login_required
def send():
    form = ChatForm()
    if not form.validate_on_submit():
        flash(first_error(form), 'warning')
        return redirect(url_for('chat.index'))

    chat = Chat(id='-', sender=current_user.uid, message=form.message.data.strip(), timestamp=now_iso())
    try:
        store.push('chat', chat.to_store(exclude={'id'}))
    except StoreError:
        current_app.logger.exception("Gagal mengirim chat dari %s", current_user.uid)
        flash('Gagal mengirim pesan.', 'danger')
    return redirect(url_for('chat.index'))


@chat_bp.route('/stream')
@login_required
def stream():
    """Server-sent events: daftar chat terurut dikirim ulang setiap ada perubahan."""
    uid = current_user.uid

    @stream_with_context
    def generate():
        events = queue.Queue()
        view = LiveView(store)
        try:
            users = view.watch('users', records.users_from_snapshot)
            view.watch(
                'chat',
                records.chats_from_snapshot,
                on_change=lambda chats: events.put(chat_payload(chats, records.users_by_uid(users.value or []))),
            )
            while True:
                try:
                    payload = events.get(timeout=KEEPALIVE_SECONDS)
                except queue.Empty:
                    yield ': ping\n\n'
                    continue
                yield f"data: {json.dumps(payload)}\n\n"
        finally:
            view.close()
            current_app.logger.debug("Stream chat %s ditutup", uid)

    return Response(generate(), mimetype='text/event-stream', headers={'Cache-Control': 'no-cache'})
