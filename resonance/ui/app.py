from __future__ import annotations

import logging
from typing import Any

import streamlit as st

from resonance.backend.client import create_backend
from resonance.core.config import Settings, get_settings
from resonance.core.logging import start_observability
from resonance.pages import AuthCallbackPage, DashboardLayout, Page, has_callback_tokens
from resonance.portals.context import Navigator, PortalContext
from resonance.portals.definition import PortalDefinition
from resonance.routing.guard import GuardState
from resonance.routing.router import RouteMatch

from .views import render_dashboard_sidebar, render_fragment_bridge, render_page

logger = logging.getLogger(__name__)

CONTEXT_KEY = "portal_context"
PAGE_KEY = "portal_page"
SYNCED_PATH_KEY = "portal_synced_path"
HEALTH_KEY = "portal_backend_healthy"
BRIDGED_KEY = "portal_fragment_bridged"


@st.cache_resource
def _bootstrap() -> Settings:
    """Process-wide setup shared by every browser session."""

    settings = get_settings()
    start_observability(settings)
    logger.info("Portal bootstrap complete", extra={"environment": settings.environment})
    return settings


def _url_location() -> tuple[str, dict[str, str]]:
    params = {key: st.query_params[key] for key in st.query_params}
    path = params.pop("path", "/") or "/"
    return path, params


def _get_context(portal: PortalDefinition) -> PortalContext:
    context = st.session_state.get(CONTEXT_KEY)
    if isinstance(context, PortalContext):
        return context

    settings = _bootstrap()
    path, query = _url_location()
    # One backend client per browser session keeps sessions isolated per tab.
    context = PortalContext.build(settings, create_backend(settings), navigator=Navigator(path=path, query=query))
    context.start()
    st.session_state[CONTEXT_KEY] = context
    st.session_state[SYNCED_PATH_KEY] = context.navigator.location
    logger.info("Started %s portal session", portal.name)
    return context


def _sync_from_url(context: PortalContext) -> None:
    path, query = _url_location()
    navigator = context.navigator
    url_location = Navigator(path=path, query=query).location
    if url_location != st.session_state.get(SYNCED_PATH_KEY) and url_location != navigator.location:
        navigator.navigate(path, query)
    st.session_state[SYNCED_PATH_KEY] = url_location


def _sync_to_url(context: PortalContext) -> None:
    navigator = context.navigator
    st.query_params.clear()
    st.query_params["path"] = navigator.path
    for key, value in navigator.query.items():
        st.query_params[key] = value
    st.session_state[SYNCED_PATH_KEY] = navigator.location


def _render_sidebar(portal: PortalDefinition, context: PortalContext) -> None:
    st.sidebar.title(portal.title)
    session = context.session_store.session
    if session is not None:
        for link in portal.nav_links:
            if st.sidebar.button(link.label, key=f"nav-{link.path}", use_container_width=True):
                context.navigator.navigate(link.path)
        st.sidebar.markdown("---")
        st.sidebar.caption(f"Signed in as {session.email or session.user_id}")

    if context.health is None:
        return
    if st.sidebar.button("Check backend", key="health-check") or HEALTH_KEY not in st.session_state:
        st.session_state[HEALTH_KEY] = context.health.check()
    if st.session_state[HEALTH_KEY]:
        st.sidebar.success("Backend reachable")
    else:
        st.sidebar.error("Backend unreachable")


def _page_for(context: PortalContext, match: RouteMatch) -> Page:
    active = context.client_scope.active_client
    key: tuple[Any, ...] = (context.navigator.location, active.id if active else None)
    cached = st.session_state.get(PAGE_KEY)
    if cached is not None and cached[0] == key:
        return cached[1]

    page = match.route.page(context, match.params, context.navigator.query)
    st.session_state[PAGE_KEY] = (key, page)
    page.mount()
    return page


def _render_route(portal: PortalDefinition, context: PortalContext) -> None:
    navigator = context.navigator
    match = portal.router.resolve(navigator.path)

    if match.route.guarded:
        decision = context.guard.evaluate()
        if decision.state is GuardState.UNKNOWN:
            st.info("Loading...")
            return
        if decision.redirect_to:
            navigator.navigate(decision.redirect_to, replace=True)
            return

    if match.route.layout in portal.layouts:
        layout = DashboardLayout(context)
        if not layout.gate():
            if layout.is_loading:
                st.info("Loading clients...")
            return
        render_dashboard_sidebar(layout)

    if match.route.page is AuthCallbackPage and not has_callback_tokens(navigator.query):
        # Wait for the bridge to reload the page with the tokens in the query.
        if st.session_state.get(BRIDGED_KEY) != navigator.location:
            st.session_state[BRIDGED_KEY] = navigator.location
            render_fragment_bridge()
            st.info("Confirming your email...")
            return

    for flash in navigator.consume_flashes():
        getattr(st, flash.level, st.info)(flash.message)

    render_page(_page_for(context, match))


def run_portal(portal: PortalDefinition) -> None:
    st.set_page_config(page_title=portal.title, layout="wide")
    context = _get_context(portal)
    _sync_from_url(context)

    before = context.navigator.location
    _render_sidebar(portal, context)
    if context.navigator.location == before:
        _render_route(portal, context)

    if context.navigator.location != before:
        _sync_to_url(context)
        st.rerun()
