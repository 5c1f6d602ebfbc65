from sqlalchemy.orm import Session
from typing import Optional

from .. import models
from ..utils.auth import normalize_email


class CRUDUser:
    def get(self, db: Session, user_id: int) -> Optional[models.User]:
        return db.query(models.User).filter(models.User.id == user_id).first()

    def get_by_email(self, db: Session, email: str) -> Optional[models.User]:
        return db.query(models.User).filter(models.User.email == normalize_email(email)).first()

    def create_client(
        self,
        db: Session,
        *,
        email: str,
        first_name: str,
        last_name: str = "",
        phone: Optional[str] = None,
    ) -> models.User:
        """Add a client row; the caller owns the transaction."""
        db_user = models.User(
            email=normalize_email(email),
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            user_type=models.UserType.CLIENT,
            is_active=True,
        )
        db.add(db_user)
        db.flush()
        return db_user


user = CRUDUser()
