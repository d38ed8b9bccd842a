from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps.guard import get_session_store
from ..schemas.session import LoginRequest, SessionState
from ..services.credentials import CredentialKind, CredentialStore
from ..services.session import SessionTracker

router = APIRouter(prefix="/api/session", tags=["session"])


def _state(store: CredentialStore, tracker: SessionTracker) -> SessionState:
    return SessionState(is_logged_in=tracker.is_logged_in, is_admin=store.has(CredentialKind.ADMIN))


@router.get("", response_model=SessionState, summary="Current session flags")
async def read_session(store: CredentialStore = Depends(get_session_store)):
    tracker = SessionTracker(store)
    tracker.check_auth_state()
    return _state(store, tracker)


@router.post("/login", response_model=SessionState, summary="Store a user token")
async def login(payload: LoginRequest, store: CredentialStore = Depends(get_session_store)):
    tracker = SessionTracker(store)
    tracker.login(payload.token)
    return _state(store, tracker)


@router.post("/logout", response_model=SessionState, summary="Drop the user token")
async def logout(store: CredentialStore = Depends(get_session_store)):
    tracker = SessionTracker(store)
    tracker.logout()
    return _state(store, tracker)


@router.post("/admin/login", response_model=SessionState, summary="Store an admin token")
async def admin_login(payload: LoginRequest, store: CredentialStore = Depends(get_session_store)):
    store.set(CredentialKind.ADMIN, payload.token)
    tracker = SessionTracker(store)
    tracker.check_auth_state()
    return _state(store, tracker)


@router.post("/admin/logout", response_model=SessionState, summary="Drop the admin token")
async def admin_logout(store: CredentialStore = Depends(get_session_store)):
    store.clear(CredentialKind.ADMIN)
    tracker = SessionTracker(store)
    tracker.check_auth_state()
    return _state(store, tracker)
