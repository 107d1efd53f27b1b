"""
DAOs Package — Data Access Layer (SQLAlchemy 2.0)
=================================================

Conventions
-----------
- Every method takes the active SQLAlchemy `Session` as first argument
- Session lifecycle (open/commit/rollback) is handled by `@transactional` callers
- DAOs log and re-raise errors so upper layers decide the error policy

Contents
--------
- CaseDao
    * createCase / fetchCaseById
    * fetchCasesPage — newest-first page with keyword and tag filters plus total count
    * fetchAllTagColumns — raw `tags` values for building the tag vocabulary
    * updateCase / deleteCase

- ModerationLogDao
    * createLog / fetchLogs
"""
