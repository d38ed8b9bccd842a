"""Session tracker: local login/logout and re-checks on navigation."""

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from sessionguard.core.routes import default_routes
from sessionguard.services.credentials import CredentialKind, CredentialStore, MemoryStorage
from sessionguard.services.navigation import Router
from sessionguard.services.session import SessionTracker


@pytest.fixture()
def store():
    return CredentialStore(MemoryStorage())


def test_login_then_check_is_logged_in(store):
    tracker = SessionTracker(store)
    tracker.login("abc")
    tracker.check_auth_state()
    assert tracker.is_logged_in is True
    assert store.get(CredentialKind.USER) == "abc"


def test_logout_then_check_is_logged_out(store):
    tracker = SessionTracker(store)
    tracker.login("abc")
    tracker.logout()
    tracker.check_auth_state()
    assert tracker.is_logged_in is False
    assert store.get(CredentialKind.USER) is None


def test_admin_token_alone_is_not_a_user_session(store):
    store.set(CredentialKind.ADMIN, "admin")
    tracker = SessionTracker(store)
    assert tracker.check_auth_state() is False


def test_logout_keeps_admin_token(store):
    store.set(CredentialKind.ADMIN, "admin")
    tracker = SessionTracker(store)
    tracker.login("abc")
    tracker.logout()
    assert store.get(CredentialKind.ADMIN) == "admin"


def test_mount_reads_existing_credential(store):
    store.set(CredentialKind.USER, "restored")
    tracker = SessionTracker(store)
    assert tracker.is_logged_in is False
    tracker.mount()
    assert tracker.is_logged_in is True


def test_route_change_picks_up_out_of_band_clear(store):
    router = Router(default_routes())
    tracker = SessionTracker(store, router)
    tracker.login("abc")
    tracker.mount()

    store.clear(CredentialKind.USER)
    assert tracker.is_logged_in is True

    router.push("register")
    assert tracker.is_logged_in is False


def test_mount_is_idempotent_and_unmount_stops_updates(store):
    router = Router(default_routes())
    tracker = SessionTracker(store, router)
    tracker.mount()
    tracker.mount()
    assert tracker.mounted

    tracker.unmount()
    store.set(CredentialKind.USER, "abc")
    router.push("register")
    assert tracker.is_logged_in is False
    assert not tracker.mounted


def test_storage_errors_propagate():
    class BrokenStorage(MemoryStorage):
        def set_item(self, key, value):
            raise OSError("quota exceeded")

    tracker = SessionTracker(CredentialStore(BrokenStorage()))
    with pytest.raises(OSError):
        tracker.login("abc")
    assert tracker.is_logged_in is False
