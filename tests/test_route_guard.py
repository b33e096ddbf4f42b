from __future__ import annotations

from resonance.domain.models import Role
from resonance.routing.guard import GuardState, RouteGuard
from resonance.state.session import SessionStore


def test_guard_is_unknown_until_session_resolves(fake_auth):
    store = SessionStore(fake_auth)
    guard = RouteGuard(store)

    decision = guard.evaluate()

    assert decision.state is GuardState.UNKNOWN
    assert decision.redirect_to is None
    assert not decision.should_render


def test_anonymous_visitors_are_sent_to_sign_in(fake_auth):
    store = SessionStore(fake_auth)
    guard = RouteGuard(store, sign_in_path="/auth/sign-in")
    store.start()

    decision = guard.evaluate()

    assert decision.state is GuardState.ANONYMOUS
    assert decision.redirect_to == "/auth/sign-in"


def test_guard_follows_sign_in_and_sign_out(fake_auth):
    store = SessionStore(fake_auth)
    guard = RouteGuard(store)
    store.start()

    fake_auth.sign_in_with_password("admin@example.com", "pw")
    assert guard.evaluate().should_render

    fake_auth.sign_out()
    assert guard.state is GuardState.ANONYMOUS


def test_closed_guard_stops_following_the_store(fake_auth):
    fake_auth.login_as(Role.ADMIN)
    store = SessionStore(fake_auth)
    guard = RouteGuard(store)
    store.start()
    guard.close()

    fake_auth.sign_out()

    assert guard.state is GuardState.AUTHENTICATED
