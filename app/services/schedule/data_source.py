"""
The one collaborator the schedule view talks to.

ScheduleView only needs to list sessions in a window and to create, update
or delete a single session. TrainerSessionSource binds that to the Postgres
repository for one authenticated trainer.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol

from app.models.domain.schedule_domain import SessionDraft
from app.repositories.session_repository import SessionRepository


class SessionDataSource(Protocol):
    async def fetch_sessions(
        self, range_start: datetime, range_end: datetime
    ) -> Sequence[Mapping[str, Any]]:
        """Raw session rows starting in [range_start, range_end), ordered by start."""
        ...

    async def create_or_update_session(self, draft: SessionDraft) -> str:
        """Persist the draft and return the session id."""
        ...

    async def delete_session(self, session_id: str) -> None: ...


class TrainerSessionSource:
    """SessionDataSource scoped to a single trainer's workouts."""

    def __init__(self, trainer_id: str, repository: type[SessionRepository] = SessionRepository):
        self.trainer_id = trainer_id
        self.repository = repository

    async def fetch_sessions(
        self, range_start: datetime, range_end: datetime
    ) -> Sequence[Mapping[str, Any]]:
        return await self.repository.list_for_trainer(self.trainer_id, range_start, range_end)

    async def create_or_update_session(self, draft: SessionDraft) -> str:
        if draft.participant_id is None:
            raise ValueError("A session needs a participant before it can be saved")

        if draft.is_new:
            return await self.repository.create(
                self.trainer_id,
                draft.participant_id,
                draft.title,
                draft.start_time,
                draft.end_time,
            )

        await self.repository.update(
            self.trainer_id,
            draft.session_id,
            draft.participant_id,
            draft.title,
            draft.start_time,
            draft.end_time,
        )
        return draft.session_id

    async def delete_session(self, session_id: str) -> None:
        await self.repository.delete(self.trainer_id, session_id)
