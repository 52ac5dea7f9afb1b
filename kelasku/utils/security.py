from urllib.parse import urlparse, urljoin
from flask import request

def is_safe_url(target: str) -> bool:
    if not target:
        return False

    host_url = urlparse(request.host_url)
    redirect_url = urlparse(urljoin(request.host_url, target))

    return (
        redirect_url.scheme in ("http", "https")
        and host_url.netloc == redirect_url.netloc
    )


def is_valid_game_link(link: str) -> bool:
    """Link game harus URL absolut http/https yang punya host."""
    if not link:
        return False

    try:
        parsed = urlparse(link.strip())
    except ValueError:
        return False

    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
