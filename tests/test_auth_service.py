from unittest.mock import MagicMock

from api_client import ApiError
from endpoints import AUTH
from services import AuthService


def test_login_hands_token_to_callback(client):
    client.post.return_value = {"data": {"token": "abc", "user": {"email": "admin@example.com"}}}
    on_login = MagicMock()

    result = AuthService(client, on_login=on_login).login("admin@example.com", "secret")

    assert result.success is True
    client.post.assert_called_once_with(AUTH.LOGIN, json={"email": "admin@example.com", "password": "secret"})
    on_login.assert_called_once_with("abc", {"email": "admin@example.com"})


def test_failed_login_does_not_store_token(client):
    client.post.side_effect = ApiError("Invalid credentials", 401)
    on_login = MagicMock()

    result = AuthService(client, on_login=on_login).login("admin@example.com", "wrong")

    assert result.success is False
    assert result.error == "Invalid credentials"
    on_login.assert_not_called()


def test_logout_clears_token_even_when_server_fails(client):
    client.post.side_effect = ApiError("Server error", 500)
    on_logout = MagicMock()

    result = AuthService(client, on_logout=on_logout).logout()

    assert result.success is False
    on_logout.assert_called_once_with()
