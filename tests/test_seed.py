"""Unit tests for seed.py -- the staff account seeding CLI.

Covers:
- both accounts are created and can be verified with the seed password
- re-running resets the password instead of failing on the duplicate
- a weak password is refused before anything is written
"""

import pytest

from auth.hashing import PasswordHasher
from auth.store import CredentialStore
from core.errors import ValidationError
from seed import SEED_ACCOUNTS, main, seed_accounts


@pytest.fixture
def store():
    s = CredentialStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture(scope="module")
def hasher():
    return PasswordHasher(rounds=4)


def test_seeds_both_accounts(store, hasher):
    assert seed_accounts(store, hasher, "S3cure!Passw0rd") == list(SEED_ACCOUNTS)
    for username in SEED_ACCOUNTS:
        record = store.find_by_identity(username)
        assert hasher.verify("S3cure!Passw0rd", record.secret_hash)


def test_rerun_resets_password(store, hasher):
    seed_accounts(store, hasher, "S3cure!Passw0rd")
    seed_accounts(store, hasher, "N3w!Passw0rd_x")
    record = store.find_by_identity("auditor")
    assert hasher.verify("N3w!Passw0rd_x", record.secret_hash)
    assert not hasher.verify("S3cure!Passw0rd", record.secret_hash)


def test_weak_password_is_refused(store, hasher):
    with pytest.raises(ValidationError):
        seed_accounts(store, hasher, "password")
    assert store.find_by_identity("employee1") is None


def test_main_writes_to_database_url(tmp_path, capsys):
    db_url = f"sqlite:///{tmp_path / 'seed.db'}"
    assert main(["--password", "S3cure!Passw0rd", "--database-url", db_url]) == 0
    assert "Seeded employee1" in capsys.readouterr().out

    store = CredentialStore(db_url)
    try:
        assert store.find_by_identity("auditor") is not None
    finally:
        store.close()


def test_main_rejects_weak_password(tmp_path):
    db_url = f"sqlite:///{tmp_path / 'seed.db'}"
    assert main(["--password", "weak", "--database-url", db_url]) == 1
