"""
Entities Package — SQLAlchemy 2.0 ORM Models
============================================

Tech Stack & Conventions
------------------------
- Portable `Uuid` primary keys (native on PostgreSQL, CHAR(32) elsewhere)
- Timezone-aware timestamps (UTC)
- SQLAlchemy 2.0 style `Mapped[...]` + `mapped_column(...)`
- List/object payloads stored as JSON-encoded TEXT

Contents
--------
- Case
    A published DX failure case.
    * Fields: `id`, `title`, `summary` (paragraph shown in the gallery), `tags`
      (JSON list), `image_url`, the optional story fields (`when`, `location`,
      `who`, `impact`, `cause`, `suggestions`), `conversation` (JSON transcript),
      `paragraph_summary`, `created_at`, `updated_at`
    * Created only after the moderation gate passes; updated/deleted from the admin API

- ModerationLog
    Audit row written when the moderation gate rejects a submission.
    * Fields: `id`, `content`, `moderation_result` (JSON), `created_at`
"""
