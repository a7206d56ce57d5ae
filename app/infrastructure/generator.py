"""Bridge to the stored procedure that materializes deadline notifications."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from anyio import to_thread
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.errors import GenerationFailed

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class StoredProcedureGenerator:
    """Invoke ``procedure`` once per call.

    The procedure itself is responsible for not creating a second notification
    for a deadline that already has one, so concurrent calls are safe.
    """

    def __init__(self, session_factory: Callable[[], Session], procedure: str) -> None:
        if not _IDENTIFIER.match(procedure):
            raise ValueError(f"Invalid procedure name '{procedure}'")
        self._session_factory = session_factory
        self.procedure = procedure

    async def generate(self) -> None:
        await to_thread.run_sync(self._call_procedure)

    def _call_procedure(self) -> None:
        session = self._session_factory()
        try:
            session.execute(text(f"SELECT {self.procedure}()"))
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            message = str(getattr(exc, "orig", None) or exc)
            raise GenerationFailed(message) from exc
        finally:
            session.close()
        logger.info("Stored procedure %s completed", self.procedure)


__all__ = ["StoredProcedureGenerator"]
