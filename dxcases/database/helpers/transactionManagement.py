"""
Database Transaction Management
===============================

Utilities for managing SQLAlchemy sessions with a context variable and a
decorator-based transaction wrapper.

Service functions in ``dxcases.database.core.funcs`` are decorated with
``@transactional``; a service function that calls another one joins the
caller's transaction instead of opening a second session.
"""

from functools import wraps
from sqlalchemy.orm import sessionmaker
import contextvars
from dxcases.database.config.connection_engine import connection_engine

db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Context variable storing the active SQLAlchemy session."""

SessionFactory = sessionmaker(bind=connection_engine, expire_on_commit=False)
"""Session factory bound to the application engine."""


def transactional(func):
    """
    Decorator to wrap functions in a managed SQLAlchemy transaction.

    - If a session already exists in context, it is reused.
    - Otherwise, a new session is created, committed, and closed.
    - On errors, the session is rolled back and the error re-raised.

    The wrapped function must accept a `session` keyword argument and be
    called with keyword arguments only.

    Example
    -------
    >>> @transactional
    ... def create_case(session: Session, title: str):
    ...     session.add(Case(title=title))
    """
    @wraps(func)
    def wrap_func(*args, **kwargs):
        session = db_session_context.get()
        if session:
            return func(*args, session=session, **kwargs)

        session = SessionFactory()
        token = db_session_context.set(session)

        try:
            result = func(*args, session=session, **kwargs)
            session.flush()
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
            db_session_context.reset(token)

        return result

    return wrap_func
