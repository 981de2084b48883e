"""Network sites the clinician can work in and the access granted per site."""

from __future__ import annotations

from pydantic import BaseModel

from oncosaferx.state.store import Action

SET_SITES = "SET_SITES"
SELECT_SITE = "SELECT_SITE"
GRANT_ACCESS = "GRANT_ACCESS"
REVOKE_ACCESS = "REVOKE_ACCESS"


class NetworkSite(BaseModel):
    site_id: str
    name: str
    location: str = ""
    type: str = "hospital"  # hospital, clinic, cancer_center


class MultiSiteState(BaseModel):
    sites: list[NetworkSite] = []
    current_site_id: str | None = None
    access: dict[str, str] = {}  # site_id -> access level (read, standard, full)


def multisite_reducer(state: MultiSiteState, action: Action) -> MultiSiteState:
    if action.type == SET_SITES:
        sites = list(action.payload)
        current = state.current_site_id or (sites[0].site_id if sites else None)
        return state.model_copy(update={"sites": sites, "current_site_id": current})

    if action.type == SELECT_SITE:
        if action.payload is not None and all(s.site_id != action.payload for s in state.sites):
            return state
        return state.model_copy(update={"current_site_id": action.payload})

    if action.type == GRANT_ACCESS:
        access = {**state.access, action.payload["site_id"]: action.payload.get("level", "standard")}
        return state.model_copy(update={"access": access})

    if action.type == REVOKE_ACCESS:
        if action.payload not in state.access:
            return state
        access = {k: v for k, v in state.access.items() if k != action.payload}
        return state.model_copy(update={"access": access})

    return state


def can_access(state: MultiSiteState, site_id: str) -> bool:
    return site_id in state.access
