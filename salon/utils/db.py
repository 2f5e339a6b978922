from contextlib import contextmanager
from salon import db


@contextmanager
def transaction():
    """
    Run a block of reads and writes as one unit of work.

    Commits when the block exits normally and rolls back on any exception,
    which is then re-raised for the error handlers to render.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def get_for_update(model, ident):
    """Load a row by primary key, taking a row lock where the backend supports it"""
    return db.session.get(model, ident, with_for_update=True)
