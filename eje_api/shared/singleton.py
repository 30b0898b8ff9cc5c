# eje_api/shared/singleton.py
from __future__ import annotations
import logging
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def get_or_create(db: Session, model, name: str):
    """Fetch the row called ``name``, inserting one with column defaults if missing."""
    row = db.scalar(select(model).where(model.name == name))
    if row:
        return row
    row = model(name=name)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # another request created it first
        db.rollback()
        return db.scalar(select(model).where(model.name == name))
    db.refresh(row)
    logger.info("created %s row name=%s", model.__tablename__, name)
    return row
