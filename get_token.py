import getpass

from api_client import ApiClient
from database import SessionLocal, init_db, set_auth_token, get_auth_token, clear_auth_token, get_stored_user
from services import AuthService


def store_token(token, user):
    with SessionLocal() as db:
        set_auth_token(db, token, user)


def forget_token():
    with SessionLocal() as db:
        clear_auth_token(db)


def login():
    email = input("Email: ")
    password = getpass.getpass("Password: ")

    auth = AuthService(ApiClient(), on_login=store_token)
    result = auth.login(email, password)
    if result.success:
        user = (result.data or {}).get("user") or {}
        print("\nLogged in as:", user.get("email") or email)
        print("The API token has been saved to the database")
    else:
        print("Error logging in:", result.error)


def logout():
    with SessionLocal() as db:
        user = get_stored_user(db)
    auth = AuthService(ApiClient(token_provider=_stored_token), on_logout=forget_token)
    auth.logout()
    print("Logged out", (user or {}).get("email") or "")


def _stored_token():
    with SessionLocal() as db:
        return get_auth_token(db)


if __name__ == "__main__":
    init_db()
    print("1. Log in and store the API token")
    print("2. Log out and clear the stored token")
    choice = input("Enter your choice (1 or 2): ")

    if choice == "1":
        login()
    elif choice == "2":
        logout()
    else:
        print("Invalid choice")
