# backend/app/api/dependencies/database.py
"""
Request-scoped database session.

Tests override this dependency with a session bound to their own engine.
"""

from typing import Generator

from sqlalchemy.orm import Session

from ...database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Yield a session; commit on success, roll back on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
