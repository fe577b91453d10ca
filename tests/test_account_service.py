from portal.auth.passwords import verify_password
from portal.auth.users import UserRecord, UserStore
from portal.auth.validation import Invalid, LoginForm, Ok, SignupForm
from portal.services.account_service import (
    DUPLICATE_ACCOUNT,
    INCORRECT_PASSWORD,
    USER_NOT_FOUND,
    authenticate,
    register,
)


def _store(db) -> UserStore:
    return UserStore(db["users"])


def test_register_hashes_and_inserts(db):
    users = _store(db)
    result = register(users, SignupForm(name="A", email="a@a.com", password="secret"))
    assert isinstance(result, Ok)

    doc = db["users"].docs[0]
    assert doc["name"] == "A"
    assert doc["email"] == "a@a.com"
    assert verify_password("secret", doc["passwordHash"])
    assert users.find_by_email("a@a.com") == result.value


def test_register_rejects_duplicate_email(db):
    users = _store(db)
    register(users, SignupForm(name="A", email="a@a.com", password="secret"))
    result = register(users, SignupForm(name="B", email="a@a.com", password="other1"))
    assert result == Invalid(DUPLICATE_ACCOUNT)
    assert db["users"].count_documents({"email": "a@a.com"}) == 1


def test_authenticate(db):
    users = _store(db)
    register(users, SignupForm(name="A", email="a@a.com", password="secret"))

    ok = authenticate(users, LoginForm(email="a@a.com", password="secret"))
    assert isinstance(ok, Ok)
    assert ok.value.name == "A"

    assert authenticate(users, LoginForm(email="a@a.com", password="wrong1")) == Invalid(INCORRECT_PASSWORD)
    assert authenticate(users, LoginForm(email="b@a.com", password="secret")) == Invalid(USER_NOT_FOUND)


def test_user_store_lookup(db):
    users = _store(db)
    assert users.find_by_email("") is None
    assert users.find_by_email("a@a.com") is None

    users.insert(UserRecord(name="A", email="a@a.com", password_hash="h"))
    assert users.find_by_email("a@a.com") == UserRecord(name="A", email="a@a.com", password_hash="h")
