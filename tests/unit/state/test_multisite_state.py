"""Unit tests for the multi-site reducer."""

from oncosaferx.state.multisite import (
    GRANT_ACCESS,
    REVOKE_ACCESS,
    SELECT_SITE,
    SET_SITES,
    MultiSiteState,
    NetworkSite,
    can_access,
    multisite_reducer,
)
from oncosaferx.state.store import Action, Store

SITES = [
    NetworkSite(site_id="main", name="Main Campus", type="cancer_center"),
    NetworkSite(site_id="north", name="North Clinic", type="clinic"),
]


def test_set_sites_defaults_current_to_first():
    state = multisite_reducer(MultiSiteState(), Action(type=SET_SITES, payload=SITES))

    assert state.current_site_id == "main"


def test_set_sites_keeps_existing_selection():
    state = multisite_reducer(
        MultiSiteState(current_site_id="north"), Action(type=SET_SITES, payload=SITES)
    )

    assert state.current_site_id == "north"


def test_select_unknown_site_is_ignored():
    state = MultiSiteState(sites=SITES, current_site_id="main")

    assert multisite_reducer(state, Action(type=SELECT_SITE, payload="south")) is state
    assert multisite_reducer(state, Action(type=SELECT_SITE, payload="north")).current_site_id == "north"


def test_grant_and_revoke_access():
    store = Store(multisite_reducer, MultiSiteState(sites=SITES))

    store.dispatch(Action(type=GRANT_ACCESS, payload={"site_id": "north"}))
    store.dispatch(Action(type=GRANT_ACCESS, payload={"site_id": "main", "level": "full"}))
    assert store.state.access == {"north": "standard", "main": "full"}
    assert can_access(store.state, "north")

    store.dispatch(Action(type=REVOKE_ACCESS, payload="north"))
    assert not can_access(store.state, "north")


def test_revoke_unknown_site_is_noop():
    state = MultiSiteState()

    assert multisite_reducer(state, Action(type=REVOKE_ACCESS, payload="main")) is state
