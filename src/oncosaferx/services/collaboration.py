"""
Care teams and tumor boards.

Both collections live as JSON blobs in local storage. ``fetch_tumor_boards``
prefers the backend and falls back to the stored boards when it cannot be
reached.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from oncosaferx.constants import TEAMS_KEY, TUMOR_BOARDS_KEY
from oncosaferx.data_sources.backend import BackendClient
from oncosaferx.data_sources.base_client import DataSourceError
from oncosaferx.models.collaboration import CareTeam, TeamMember, TumorBoard, TumorBoardCase
from oncosaferx.utils.storage import JsonStorage

logger = logging.getLogger(__name__)


class CollaborationError(ValueError):
    """Raised for unknown team, member or tumor board ids."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CollaborationService:
    def __init__(self, storage: JsonStorage | None = None, backend: BackendClient | None = None):
        self.storage = storage if storage is not None else JsonStorage()
        self.backend = backend

    # -- Teams ----------------------------------------------------------------

    def get_teams(self) -> list[CareTeam]:
        return self._load(TEAMS_KEY, CareTeam)

    def get_team(self, team_id: str) -> CareTeam | None:
        return next((t for t in self.get_teams() if t.id == team_id), None)

    def save_team(self, team: CareTeam) -> None:
        """Insert ``team`` or replace the stored team with the same id."""
        self._upsert(TEAMS_KEY, self.get_teams(), team)

    def add_team_member(self, team_id: str, member: TeamMember) -> CareTeam:
        team = self._require_team(team_id)
        team.members.append(member)
        team.last_activity = _utcnow()
        self.save_team(team)
        return team

    def remove_team_member(self, team_id: str, member_id: str) -> CareTeam:
        team = self._require_team(team_id)
        team.members = [m for m in team.members if m.id != member_id]
        team.last_activity = _utcnow()
        self.save_team(team)
        return team

    def update_member_availability(self, team_id: str, member_id: str, availability: str) -> CareTeam:
        team = self._require_team(team_id)
        member = next((m for m in team.members if m.id == member_id), None)
        if member is None:
            raise CollaborationError(f"Member not found: {member_id}")
        member.availability = availability
        team.last_activity = _utcnow()
        self.save_team(team)
        return team

    # -- Tumor boards ---------------------------------------------------------

    def get_tumor_boards(self) -> list[TumorBoard]:
        return self._load(TUMOR_BOARDS_KEY, TumorBoard)

    def get_tumor_board(self, board_id: str) -> TumorBoard | None:
        return next((b for b in self.get_tumor_boards() if b.id == board_id), None)

    def save_tumor_board(self, board: TumorBoard) -> None:
        self._upsert(TUMOR_BOARDS_KEY, self.get_tumor_boards(), board)

    def schedule_tumor_board(
        self,
        name: str,
        team_id: str,
        scheduled_date: datetime,
        **details,
    ) -> TumorBoard:
        """Create and store a new ``scheduled`` board for an existing team."""
        self._require_team(team_id)
        board = TumorBoard(
            name=name,
            team_id=team_id,
            scheduled_date=scheduled_date,
            status="scheduled",
            last_modified=_utcnow(),
            **details,
        )
        self.save_tumor_board(board)
        logger.info("Scheduled tumor board %s for %s", board.id, scheduled_date.isoformat())
        return board

    def add_case(self, board_id: str, case: TumorBoardCase) -> TumorBoard:
        board = self._require_board(board_id)
        board.cases.append(case)
        board.last_modified = _utcnow()
        self.save_tumor_board(board)
        return board

    def update_case(self, board_id: str, case_id: str, **updates) -> TumorBoard:
        board = self._require_board(board_id)
        for index, case in enumerate(board.cases):
            if case.id == case_id:
                board.cases[index] = case.model_copy(update=updates)
                break
        else:
            raise CollaborationError(f"Case not found: {case_id}")
        board.last_modified = _utcnow()
        self.save_tumor_board(board)
        return board

    def upcoming_tumor_boards(self, now: datetime | None = None) -> list[TumorBoard]:
        """Scheduled boards at or after ``now``, earliest first."""
        now = now or _utcnow()
        boards = [
            b
            for b in self.get_tumor_boards()
            if b.status == "scheduled" and _aware(b.scheduled_date) >= _aware(now)
        ]
        return sorted(boards, key=lambda b: _aware(b.scheduled_date))

    async def fetch_tumor_boards(self, team_id: str | None = None) -> list[TumorBoard]:
        if self.backend is not None:
            try:
                return await self.backend.get_tumor_boards(team_id)
            except DataSourceError as e:
                logger.warning("Tumor board fetch failed, using stored boards: %s", e)
        boards = self.get_tumor_boards()
        if team_id:
            boards = [b for b in boards if b.team_id == team_id]
        return boards

    # -- Private helpers --------------------------------------------------------

    def _require_team(self, team_id: str) -> CareTeam:
        team = self.get_team(team_id)
        if team is None:
            raise CollaborationError(f"Team not found: {team_id}")
        return team

    def _require_board(self, board_id: str) -> TumorBoard:
        board = self.get_tumor_board(board_id)
        if board is None:
            raise CollaborationError(f"Tumor board not found: {board_id}")
        return board

    def _load(self, key: str, model):
        raw = self.storage.get(key, [])
        if not isinstance(raw, list):
            logger.warning("Ignoring malformed %s blob", key)
            return []
        items = []
        for item in raw:
            try:
                items.append(model.model_validate(item))
            except ValidationError:
                logger.warning("Skipping unreadable %s entry: %r", key, item)
        return items

    def _upsert(self, key: str, items: list, item) -> None:
        for index, existing in enumerate(items):
            if existing.id == item.id:
                items[index] = item
                break
        else:
            items.append(item)
        self.storage.set(key, [i.model_dump(mode="json") for i in items])


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
