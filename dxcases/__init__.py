"""
DX failure case collection service.

Sub-packages
------------
- api: FastAPI router, request contracts, AI completion client, conversation
  state machine and moderation gate.
- database: settings, SQLAlchemy engine, entities, DAOs and service functions.
"""
