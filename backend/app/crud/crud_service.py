from sqlalchemy.orm import Session
from typing import Optional

from .. import models


def get_service(db: Session, service_id: int) -> Optional[models.Service]:
    return db.query(models.Service).filter(models.Service.id == service_id).first()
