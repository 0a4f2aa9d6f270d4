from contextlib import contextmanager
from sqlalchemy.orm import Session


@contextmanager
def transaction(db: Session):
    """Commit on success; roll back on any error so nothing partially applies."""
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise
