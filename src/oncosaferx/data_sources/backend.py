"""
Application backend client.

Methods:
  1. search_drugs      RxNorm-backed drug search (``/api/drugs/search``)
  2. get_drug          full drug record by rxcui
  3. get_patients      patient list for the signed-in clinician
  4. get_dashboard     admin dashboard counters
  5. post_analytics    forward one analytics event
  6. get_metrics       aggregated analytics metrics
  7. get_tumor_boards  tumor boards, optionally for one care team
"""

from __future__ import annotations

import logging
from typing import Any

from oncosaferx.config import get_settings
from oncosaferx.constants import (
    ANALYTICS_METRICS_PATH,
    ANALYTICS_PATH,
    DASHBOARD_PATH,
    DEFAULT_METRICS_RANGE,
    DRUG_DETAIL_PATH,
    DRUG_SEARCH_PATH,
    PATIENTS_PATH,
    TUMOR_BOARDS_PATH,
)
from oncosaferx.data_sources.base_client import BaseClient, ClientConfig, RequestContext
from oncosaferx.models.analytics import AnalyticsEvent, AnalyticsMetrics
from oncosaferx.models.collaboration import TumorBoard
from oncosaferx.models.drug import Drug, DrugDosing
from oncosaferx.models.patient import PatientProfile

logger = logging.getLogger("oncosaferx.data_sources.backend")

# backend JSON key -> Drug field, for keys that differ only by case style
_DRUG_KEY_MAP: dict[str, str] = {
    "genericName": "generic_name",
    "brandNames": "brand_names",
    "sideEffects": "side_effects",
    "fdaApproved": "fda_approved",
    "oncologyDrug": "oncology_drug",
    "clinicalInsights": "clinical_insights",
}


class BackendClient(BaseClient):
    """Client for the OncoSafeRx application backend."""

    def __init__(
        self,
        base_url: str | None = None,
        access_token: str | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        super().__init__(config)
        self.base_url = (
            base_url if base_url is not None else get_settings().backend_api_url
        ).rstrip("/")
        self.access_token = access_token

    @property
    def _source_name(self) -> str:
        return "backend"

    # -- Drugs ----------------------------------------------------------------

    async def search_drugs(self, query: str, limit: int | None = None) -> list[Drug]:
        """Search drugs by name. Queries shorter than two characters return []."""
        query = query.strip()
        if len(query) < 2:
            return []

        ctx = RequestContext(
            source=self._source_name, method="search_drugs", params={"q": query}
        )
        data = await self._rest_get(
            self._url(DRUG_SEARCH_PATH),
            {"q": query},
            headers=self._headers(),
            cache_namespace="drug_search",
            context=ctx,
        )
        results = (data or {}).get("results", [])
        if limit is not None:
            results = results[:limit]
        return [self._parse_drug(r) for r in results]

    async def get_drug(self, rxcui: str) -> Drug:
        ctx = RequestContext(
            source=self._source_name, method="get_drug", params={"rxcui": rxcui}
        )
        data = await self._rest_get(
            self._url(DRUG_DETAIL_PATH.format(rxcui=rxcui)),
            headers=self._headers(),
            cache_namespace="drug_detail",
            context=ctx,
        )
        return self._parse_drug(data)

    # -- Patients / dashboard -------------------------------------------------

    async def get_patients(self) -> list[PatientProfile]:
        ctx = RequestContext(source=self._source_name, method="get_patients")
        data = await self._rest_get(
            self._url(PATIENTS_PATH), headers=self._headers(), context=ctx
        )
        rows = data.get("patients", []) if isinstance(data, dict) else data or []
        return [PatientProfile.model_validate(row) for row in rows]

    async def get_dashboard(self) -> dict[str, Any]:
        ctx = RequestContext(source=self._source_name, method="get_dashboard")
        return await self._rest_get(
            self._url(DASHBOARD_PATH), headers=self._headers(), context=ctx
        )

    # -- Analytics ------------------------------------------------------------

    async def post_analytics(self, event: AnalyticsEvent) -> bool:
        ctx = RequestContext(source=self._source_name, method="post_analytics")
        data = await self._rest_post(
            self._url(ANALYTICS_PATH),
            event.model_dump(mode="json", by_alias=True),
            headers=self._headers(),
            context=ctx,
        )
        return bool((data or {}).get("success"))

    async def get_metrics(self, range_: str = DEFAULT_METRICS_RANGE) -> AnalyticsMetrics:
        ctx = RequestContext(source=self._source_name, method="get_metrics")
        data = await self._rest_get(
            self._url(ANALYTICS_METRICS_PATH),
            {"range": range_},
            headers=self._headers(),
            context=ctx,
        )
        return AnalyticsMetrics.model_validate(data)

    # -- Collaboration --------------------------------------------------------

    async def get_tumor_boards(self, team_id: str | None = None) -> list[TumorBoard]:
        params = {"teamId": team_id} if team_id else {}
        ctx = RequestContext(
            source=self._source_name, method="get_tumor_boards", params=params
        )
        data = await self._rest_get(
            self._url(TUMOR_BOARDS_PATH), params, headers=self._headers(), context=ctx
        )
        rows = (data or {}).get("tumorBoards", [])
        return [self._parse_tumor_board(row) for row in rows]

    # -- Private helpers ------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _headers(self) -> dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    @staticmethod
    def _parse_drug(raw: dict[str, Any]) -> Drug:
        """Parse a backend drug record, accepting camelCase or snake_case keys."""
        values = {_DRUG_KEY_MAP.get(k, k): v for k, v in raw.items()}
        values["rxcui"] = str(values.get("rxcui", ""))
        dosing = values.get("dosing")
        if isinstance(dosing, str):
            values["dosing"] = DrugDosing(standard=dosing)
        return Drug.model_validate(values)

    @staticmethod
    def _parse_tumor_board(raw: dict[str, Any]) -> TumorBoard:
        keys = {
            "teamId": "team_id",
            "scheduledDate": "scheduled_date",
            "virtualMeetingUrl": "virtual_meeting_url",
            "lastModified": "last_modified",
        }
        return TumorBoard.model_validate({keys.get(k, k): v for k, v in raw.items()})
