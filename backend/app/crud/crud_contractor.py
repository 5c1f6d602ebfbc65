from sqlalchemy.orm import Session
from typing import Optional

from .. import models


class CRUDContractor:
    def get(self, db: Session, contractor_id: int) -> Optional[models.Contractor]:
        return db.query(models.Contractor).filter(models.Contractor.id == contractor_id).first()

    def get_by_user_id(self, db: Session, user_id: int) -> Optional[models.Contractor]:
        return db.query(models.Contractor).filter(models.Contractor.user_id == user_id).first()

    def lock(self, db: Session, contractor_id: int) -> Optional[models.Contractor]:
        """Take the per-contractor write lock for the current transaction.

        Renders ``SELECT ... FOR UPDATE`` on PostgreSQL. SQLite ignores the
        clause; its ``BEGIN IMMEDIATE`` already holds the database write lock.
        """
        return (
            db.query(models.Contractor)
            .filter(models.Contractor.id == contractor_id)
            .with_for_update()
            .populate_existing()
            .first()
        )


contractor = CRUDContractor()
