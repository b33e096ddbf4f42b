from __future__ import annotations

from unittest.mock import MagicMock

from resonance.domain.models import Role
from resonance.services.clients import ClientService
from resonance.state.client_scope import ClientScopeStore
from resonance.state.session import SessionStore


def test_first_client_becomes_active(backend, clock):
    first = backend.clients.add("First")
    backend.clients.add("Second")
    scope = ClientScopeStore(ClientService(backend, clock=clock))

    assert scope.is_loading
    scope.load()

    assert not scope.is_loading
    assert scope.active_client.id == first.id
    assert len(scope.clients) == 2


def test_load_runs_once(backend, clock):
    backend.clients.add("First")
    scope = ClientScopeStore(ClientService(backend, clock=clock))

    scope.load()
    scope.load()

    assert backend.clients.calls == ["list_all"]


def test_load_failure_leaves_empty_scope(backend, clock):
    backend.clients.fail("list_all")
    scope = ClientScopeStore(ClientService(backend, clock=clock))

    scope.load()

    assert not scope.is_loading
    assert not scope.has_clients
    assert scope.active_client is None


def test_unexpected_load_error_is_contained():
    service = MagicMock()
    service.list_clients.side_effect = RuntimeError("socket closed")
    scope = ClientScopeStore(service)

    scope.load()

    assert not scope.is_loading
    assert scope.clients == []


def test_set_active_client_and_reload(backend, clock):
    backend.clients.add("First")
    second = backend.clients.add("Second")
    scope = ClientScopeStore(ClientService(backend, clock=clock))
    scope.load()

    assert scope.set_active_client(second.id).id == second.id
    assert scope.set_active_client("client-unknown") is None
    backend.clients.add("Third")
    scope.reload()

    assert scope.active_client.id == second.id
    assert len(scope.clients) == 3


def test_sign_out_resets_scope(backend, fake_auth, clock):
    fake_auth.login_as(Role.ADMIN)
    backend.clients.add("First")
    session_store = SessionStore(fake_auth)
    session_store.start()
    scope = ClientScopeStore(ClientService(backend, clock=clock), session_store)
    scope.load()

    fake_auth.sign_out()

    assert scope.clients == []
    assert scope.active_client is None
    assert not scope.is_loaded


def test_reload_after_failed_read_clears_clients(backend, clock):
    backend.clients.add("First")
    scope = ClientScopeStore(ClientService(backend, clock=clock))
    scope.load()
    assert scope.active_client is not None

    backend.clients.fail("list_all")
    scope.reload()

    assert not scope.is_loading
    assert scope.clients == []
    assert scope.active_client is None


def test_reload_after_empty_read_clears_active_client(backend, clock):
    backend.clients.add("First")
    scope = ClientScopeStore(ClientService(backend, clock=clock))
    scope.load()

    backend.clients.rows.clear()
    scope.reload()

    assert scope.clients == []
    assert not scope.has_clients
    assert scope.active_client is None
