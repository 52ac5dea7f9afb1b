import pytest

from kelasku.utils.security import is_safe_url, is_valid_game_link


@pytest.mark.parametrize('link, valid', [
    ('https://kahoot.it', True),
    ('http://localhost:8080/game', True),
    ('ftp://files.example.com/game', False),
    ('javascript:alert(1)', False),
    ('kahoot.it', False),
    ('https://', False),
    ('', False),
])
def test_game_link_validation(link, valid):
    assert is_valid_game_link(link) is valid


def test_is_safe_url(app):
    with app.test_request_context('/', base_url='http://kelas.local'):
        assert is_safe_url('/pr/')
        assert is_safe_url('http://kelas.local/chat/')
        assert not is_safe_url('https://jahat.example/login')
        assert not is_safe_url('')
