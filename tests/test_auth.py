from tracker import auth
from tracker.models import Role


def test_login_success():
    user = auth.authenticate_user("developer1@example.com")
    assert user is not None
    assert user.id == "1"
    assert user.role == Role.DEVELOPER


def test_login_failure():
    assert auth.authenticate_user("nobody@example.com") is None
    assert auth.authenticate_user("DEVELOPER1@example.com") is None


def test_get_user_by_id_and_demo_user():
    assert auth.get_user_by_id("2").name == "Manager"
    assert auth.get_user_by_id("99") is None
    assert auth.get_demo_user("Manager").id == "2"
    assert auth.get_demo_user(Role.DEVELOPER).id == "1"


def test_list_developers_excludes_current_user():
    assert [u.id for u in auth.list_developers()] == ["1", "3"]
    assert [u.id for u in auth.list_developers(exclude_id="1")] == ["3"]


def test_dashboard_for_role():
    assert auth.dashboard_for(auth.get_user_by_id("1")) == "developer"
    assert auth.dashboard_for(auth.get_user_by_id("2")) == "manager"


def test_session_round_trip_with_dict():
    session = {}
    assert not auth.is_authenticated(session)
    assert auth.get_current_user(session) is None

    manager = auth.authenticate_user("manager@example.com")
    auth.set_current_user(session, manager)
    assert auth.is_authenticated(session)
    assert auth.get_current_user(session) == manager

    auth.clear_current_user(session)
    assert "user" not in session
    assert auth.get_current_user(session) is None
    # Clearing twice is harmless.
    auth.clear_current_user(session)


def test_session_in_local_storage(storage):
    dev = auth.authenticate_user("developer2@example.com")
    auth.set_current_user(storage, dev)
    assert storage.get_item("user") is not None
    assert auth.get_current_user(storage) == dev
    auth.clear_current_user(storage)
    assert storage.get_item("user") is None


def test_corrupt_session_is_treated_as_logged_out():
    session = {"user": "{not json"}
    assert auth.get_current_user(session) is None
    assert not auth.is_authenticated(session)
    session = {"user": '{"id": "1"}'}
    assert auth.get_current_user(session) is None
    assert not auth.is_authenticated(session)
