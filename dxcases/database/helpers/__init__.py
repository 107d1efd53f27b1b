"""
The `helpers` package provides utilities that support database operations.

Contents
--------
- transactionManagement
    Context variable (`db_session_context`) carrying the active session and the
    `@transactional` decorator that opens, commits, rolls back and closes it.
"""
