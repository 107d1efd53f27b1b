"""
ModerationLog DAO — Create & Fetch
==================================

The DAO adds objects to the session but does not commit; the caller controls
the transaction.
"""

import logging

from sqlalchemy import desc
from sqlalchemy.orm import Session
from dxcases.database.entities.moderation_logs import ModerationLog

logger = logging.getLogger("uvicorn")


class ModerationLogDao:
    """
    Data Access Object for `ModerationLog`.
    """

    def createLog(self, session: Session, moderation_log: ModerationLog) -> ModerationLog:
        try:
            session.add(moderation_log)
            session.flush()
            return moderation_log
        except Exception as e:
            logger.error(f"Error in ModerationLogDao.createLog. Error Message: {e}")
            raise e

    def fetchLogs(self, session: Session) -> list[ModerationLog]:
        """Return every moderation log, newest first."""
        try:
            return session.query(ModerationLog).order_by(desc(ModerationLog.created_at)).all()
        except Exception as e:
            logger.error(f"Error in ModerationLogDao.fetchLogs. Error Message: {e}")
            raise e
