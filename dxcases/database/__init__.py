"""
The `database` package is responsible for all interactions with the application's database.
It provides configuration, entity definitions, CRUD operations, and utility functions
that connect the API router with the `cases` and `moderation_logs` tables.

Contents:
    - config:
        Settings loaded from the environment and the SQLAlchemy engine built from them.

    - entities:
        SQLAlchemy entity models for published cases and moderation audit rows.

    - daos:
        Data Access Objects (DAOs) providing CRUD operations for the entities.

    - core:
        Service functions called by the router; each runs in its own transaction.

    - helpers:
        The `@transactional` decorator that manages session lifecycle.
"""
