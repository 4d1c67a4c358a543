"""
Persistence layer for trainer workout sessions.

Reads go through the workout_details view, which joins the client's name
onto each workout row. Writes go to the workouts table.
"""

from datetime import datetime
from typing import Any

from app.db.helpers import DatabaseError, execute_query, fetch_all, fetch_one, with_db_retry
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class SessionRepositoryError(DatabaseError):
    """More specific exception for workout persistence failures."""


class SessionRepository:
    """SQL for the trainer's workout sessions."""

    SELECT_COLUMNS = """
        id, trainer_id, client_id, title, start_time, end_time,
        client_first_name, client_last_name
    """

    @classmethod
    @with_db_retry(max_retries=2)
    async def list_for_trainer(
        cls, trainer_id: str, range_start: datetime, range_end: datetime
    ) -> list[dict[str, Any]]:
        """Rows starting in [range_start, range_end), earliest first."""
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM workout_details
            WHERE trainer_id = %s
              AND start_time >= %s
              AND start_time < %s
            ORDER BY start_time
        """
        rows = await fetch_all(query, (trainer_id, range_start, range_end))
        logger.debug(
            "Workout sessions loaded",
            trainer_id=trainer_id,
            range_start=range_start.isoformat(),
            range_end=range_end.isoformat(),
            count=len(rows),
        )
        return rows

    @classmethod
    async def create(
        cls,
        trainer_id: str,
        client_id: str,
        title: str,
        start_time: datetime,
        end_time: datetime,
    ) -> str:
        """Insert a workout and return its id."""
        query = """
            INSERT INTO workouts (trainer_id, client_id, title, start_time, end_time)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING id
        """
        row = await fetch_one(query, (trainer_id, client_id, title, start_time, end_time))
        if not row:
            raise SessionRepositoryError(
                "Failed to create workout", operation="create", recoverable=False
            )

        session_id = str(row["id"])
        logger.info("Workout created", trainer_id=trainer_id, session_id=session_id)
        return session_id

    @classmethod
    async def update(
        cls,
        trainer_id: str,
        session_id: str,
        client_id: str,
        title: str,
        start_time: datetime,
        end_time: datetime,
    ) -> None:
        query = """
            UPDATE workouts
            SET client_id = %s,
                title = %s,
                start_time = %s,
                end_time = %s
            WHERE id = %s AND trainer_id = %s
        """
        updated = await execute_query(
            query, (client_id, title, start_time, end_time, session_id, trainer_id)
        )
        if updated == 0:
            raise SessionRepositoryError(
                f"Workout {session_id} not found", operation="update", recoverable=False
            )

        logger.info("Workout updated", trainer_id=trainer_id, session_id=session_id)

    @classmethod
    async def delete(cls, trainer_id: str, session_id: str) -> None:
        query = "DELETE FROM workouts WHERE id = %s AND trainer_id = %s"
        deleted = await execute_query(query, (session_id, trainer_id))
        if deleted == 0:
            raise SessionRepositoryError(
                f"Workout {session_id} not found", operation="delete", recoverable=False
            )

        logger.info("Workout deleted", trainer_id=trainer_id, session_id=session_id)
