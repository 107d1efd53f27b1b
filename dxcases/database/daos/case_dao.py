"""
Case DAO

Purpose
-------
Thin data-access layer for the `Case` entity used by the public gallery,
the case detail view, the submission flow and the admin back-office.

Filtering
---------
- keyword: case-insensitive substring over `title` and `summary`.
- tags: `tags` holds a JSON list written with `ensure_ascii=False`, so a tag is
  present when the quoted JSON string of the tag occurs in the column. Every
  requested tag must be present.
"""

import json
import logging
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session
from dxcases.database.entities.cases import Case

logger = logging.getLogger("uvicorn")


class CaseDao:
    """
    Data Access Object (DAO) for managing Case entities.
    """

    def createCase(self, session: Session, case: Case) -> Case:
        """Stage a new case and flush it so generated columns are populated."""
        try:
            session.add(case)
            session.flush()
            return case
        except Exception as e:
            logger.error(f"Error in CaseDao.createCase. Error: {e}")
            raise e

    def fetchCaseById(self, session: Session, case_id: UUID) -> Optional[Case]:
        """Return the case with the given id, or None."""
        try:
            return session.get(Case, case_id)
        except Exception as e:
            logger.error(f"Error in CaseDao.fetchCaseById. Error: {e}")
            raise e

    def _filtered_query(self, session: Session, keyword: Optional[str], tags: Iterable[str]):
        query = session.query(Case)
        if keyword:
            query = query.filter(
                or_(
                    Case.title.icontains(keyword, autoescape=True),
                    Case.summary.icontains(keyword, autoescape=True),
                )
            )
        for tag in tags:
            query = query.filter(Case.tags.contains(json.dumps(tag, ensure_ascii=False), autoescape=True))
        return query

    def fetchCasesPage(
        self,
        session: Session,
        offset: int,
        limit: int,
        keyword: Optional[str] = None,
        tags: Iterable[str] = (),
    ) -> tuple[list[Case], int]:
        """
        Fetch one page of cases, newest first.

        Returns
        -------
        tuple[list[Case], int]
            The page rows and the total number of rows matching the filters.
        """
        tags = list(tags)
        try:
            query = self._filtered_query(session, keyword, tags)
            total = query.with_entities(func.count(Case.id)).scalar() or 0
            rows = (
                query.order_by(desc(Case.created_at))
                .offset(offset)
                .limit(limit)
                .all()
            )
            return rows, total
        except Exception as e:
            logger.error(f"Error in CaseDao.fetchCasesPage. Error: {e}")
            raise e

    def fetchAllTagColumns(self, session: Session) -> list[str]:
        """Return the raw `tags` column of every case."""
        try:
            return [row[0] for row in session.query(Case.tags).all()]
        except Exception as e:
            logger.error(f"Error in CaseDao.fetchAllTagColumns. Error: {e}")
            raise e

    def updateCase(self, session: Session, case_id: UUID, values: dict) -> Optional[Case]:
        """
        Assign `values` onto the case with the given id.

        Returns None when no such case exists.
        """
        try:
            case = session.get(Case, case_id)
            if case is None:
                return None
            for key, value in values.items():
                setattr(case, key, value)
            session.flush()
            return case
        except Exception as e:
            logger.error(f"Error in CaseDao.updateCase. Error: {e}")
            raise e

    def deleteCase(self, session: Session, case_id: UUID) -> bool:
        """Delete the case with the given id. Returns False if it did not exist."""
        try:
            case = session.get(Case, case_id)
            if case is None:
                return False
            session.delete(case)
            return True
        except Exception as e:
            logger.error(f"Error in CaseDao.deleteCase. Error: {e}")
            raise e
