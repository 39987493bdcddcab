import json

from cyberguard.client import ClientSessionStore, JSONFileStorage, MemoryStorage, guard_route

LOGIN_RESPONSE = {
    "success": True,
    "message": "Login successful",
    "data": {"token": "jwt-token", "user": {"id": 1, "username": "alice", "role": "user"}},
}


def test_login_response_is_stored_under_one_key():
    storage = MemoryStorage()
    store = ClientSessionStore(storage)

    store.set_from_login(LOGIN_RESPONSE, "user")

    blob = json.loads(storage["userData"])
    assert blob["token"] == "jwt-token"
    assert blob["username"] == "alice"
    assert blob["loginType"] == "user"
    assert "loginTime" in blob
    assert store.auth_headers()["Authorization"] == "Bearer jwt-token"


def test_corrupt_blob_is_treated_as_signed_out():
    store = ClientSessionStore(MemoryStorage(userData="{not json"))
    assert store.get() is None
    assert not store.is_authenticated()


def test_clear_signs_out():
    store = ClientSessionStore()
    store.set_guest()
    store.clear()
    assert store.get() is None


def test_update_token_keeps_profile():
    store = ClientSessionStore()
    store.set_from_login(LOGIN_RESPONSE)
    store.update_token("fresh")
    assert store.token == "fresh"
    assert store.get()["username"] == "alice"


def test_json_file_storage_persists(tmp_path):
    path = str(tmp_path / "session.json")
    ClientSessionStore(JSONFileStorage(path)).set_from_login(LOGIN_RESPONSE)

    assert ClientSessionStore(JSONFileStorage(path)).token == "jwt-token"


def test_guard_without_session_redirects_home():
    decision = guard_route(ClientSessionStore())
    assert decision.redirect_to == "/"


def test_guard_admin_routes():
    store = ClientSessionStore()
    store.set_guest()
    assert guard_route(store, require_admin=True).redirect_to == "/"

    store.set({"role": "admin", "token": "t"})
    assert guard_route(store, require_admin=True).allowed
    # Admins are sent to their own area from user routes
    assert guard_route(store).redirect_to == "/admin"


def test_guard_user_routes():
    store = ClientSessionStore()
    store.set_from_login(LOGIN_RESPONSE)
    assert guard_route(store).allowed
    assert guard_route(store, require_admin=True).redirect_to == "/"

    store.set_guest()
    assert guard_route(store).allowed
