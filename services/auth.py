from endpoints import AUTH
from services.base import BaseService


class AuthService(BaseService):
    name = "Auth Service"

    def __init__(self, client, on_login=None, on_logout=None):
        super().__init__(client)
        self.on_login = on_login
        self.on_logout = on_logout

    def login(self, email, password):
        result = self._call(
            "logging in",
            lambda: self.client.post(AUTH.LOGIN, json={"email": email, "password": password}),
            "Login failed",
        )
        data = result.data or {}
        if result.success and data.get("token") and self.on_login:
            self.on_login(data["token"], data.get("user"))
        return result

    def logout(self):
        result = self._call(
            "logging out",
            lambda: self.client.post(AUTH.LOGOUT),
            "Logout failed",
        )
        # The local token is dropped even when the server call fails
        if self.on_logout:
            self.on_logout()
        return result

    def me(self):
        return self._call(
            "fetching current user",
            lambda: self.client.get(AUTH.ME),
            "Failed to fetch user",
        )
