from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from dnote.db import Base, engine as default_engine
from dnote.core import models  # noqa: F401  Import models to register them with Base


def init_db(engine: Optional[Engine] = None) -> None:
    """Initializes the database schema."""
    bind = engine or default_engine
    Base.metadata.create_all(bind=bind)

    # Apply additional migrations not covered by SQLAlchemy ORM
    apply_fts_migrations(bind)


def apply_fts_migrations(engine: Engine) -> None:
    """
    Create the FTS5 index over note bodies and the triggers keeping it in sync.

    note_fts is an external-content table: it stores only the index and reads
    body text from notes by rowid. All statements are idempotent.
    """
    with engine.connect() as conn:
        conn.execute(text("""
            CREATE VIRTUAL TABLE IF NOT EXISTS note_fts USING fts5(
                body,
                content='notes',
                content_rowid='id',
                tokenize='porter unicode61'
            )
        """))

        conn.execute(text("""
            CREATE TRIGGER IF NOT EXISTS notes_after_insert AFTER INSERT ON notes BEGIN
                INSERT INTO note_fts (rowid, body) VALUES (new.id, new.body);
            END
        """))

        conn.execute(text("""
            CREATE TRIGGER IF NOT EXISTS notes_after_delete AFTER DELETE ON notes BEGIN
                INSERT INTO note_fts (note_fts, rowid, body) VALUES ('delete', old.id, old.body);
            END
        """))

        conn.execute(text("""
            CREATE TRIGGER IF NOT EXISTS notes_after_update AFTER UPDATE OF body ON notes BEGIN
                INSERT INTO note_fts (note_fts, rowid, body) VALUES ('delete', old.id, old.body);
                INSERT INTO note_fts (rowid, body) VALUES (new.id, new.body);
            END
        """))

        conn.commit()
