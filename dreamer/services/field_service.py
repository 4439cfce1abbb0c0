import logging
import math
from typing import List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dreamer.core.config import settings
from dreamer.core.exceptions import InternalError, NotFoundError
from dreamer.models.field import Field
from dreamer.repository import field_repository
from dreamer.schemas.field import FieldCreate

logger = logging.getLogger(__name__)


class FieldService:
    def __init__(self, db: Session):
        self.db = db

    def list_fields(self, page: int = 1) -> Tuple[List[Field], int]:
        page_size = settings.DEFAULT_PAGE_SIZE
        fields = field_repository.list_fields(
            self.db,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        total_pages = math.ceil(field_repository.count_fields(self.db) / page_size)
        return fields, total_pages

    def get_field(self, field_id: int) -> Field:
        field = field_repository.get_field(self.db, field_id)
        if field is None:
            raise NotFoundError("Field not found")
        return field

    def create_field(self, payload: FieldCreate) -> Field:
        field = Field(**payload.model_dump())
        try:
            field_repository.create_field(self.db, field)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Could not create field %s", payload.name)
            raise InternalError("Failed to create field") from exc

        self.db.refresh(field)
        logger.info("Created field %s (%s)", field.id, field.type)
        return field
