from __future__ import annotations

import logging
from typing import Callable

from admin_console.application.dto.records import CategoryRecordDTO
from admin_console.application.exceptions import CategoryNotFoundError, CategoryValidationError
from admin_console.application.ports.document_store import DocumentStorePort
from admin_console.application.utils.schedule import slugify
from admin_console.domain.entities.category import Category

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50


class CategoryAdminUseCase:
    """
    Writes category changes to the document store.

    The dashboard picks the changes up through its live categories stream;
    nothing here touches dashboard state directly.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        collection: str,
        current_categories: Callable[[], tuple[Category, ...]],
    ) -> None:
        self._store = store
        self._collection = collection
        self._current_categories = current_categories
        self._logger = logging.getLogger(__name__)

    async def create_category(self, name: str) -> Category:
        clean = _validate_name(name)
        record = await self._store.create(
            self._collection,
            {"name": clean, "slug": slugify(clean), "isActive": True},
        )
        self._logger.info("Category created", extra={"category_id": record.get("id"), "category": clean})
        return CategoryRecordDTO.model_validate(record).to_entity()

    async def update_category(self, category_id: str, name: str) -> Category:
        existing = self._require(category_id)
        clean = _validate_name(name)
        record = await self._store.update(
            self._collection,
            category_id,
            {"name": clean, "slug": slugify(clean), "isActive": existing.is_active},
        )
        self._logger.info("Category updated", extra={"category_id": category_id, "category": clean})
        return CategoryRecordDTO.model_validate({**record, "id": category_id}).to_entity()

    async def toggle_category_status(self, category_id: str, is_active: bool) -> None:
        self._require(category_id)
        await self._store.update(self._collection, category_id, {"isActive": is_active})
        self._logger.info("Category status changed", extra={"category_id": category_id, "is_active": is_active})

    async def delete_category(self, category_id: str) -> None:
        self._require(category_id)
        await self._store.delete(self._collection, category_id)
        self._logger.info("Category deleted", extra={"category_id": category_id})

    def _require(self, category_id: str) -> Category:
        for category in self._current_categories():
            if category.id == category_id:
                return category
        raise CategoryNotFoundError(f"Unknown category: {category_id}")


def _validate_name(name: str | None) -> str:
    clean = (name or "").strip()
    if not clean:
        raise CategoryValidationError("Category name is required")
    if len(clean) < NAME_MIN_LENGTH:
        raise CategoryValidationError(f"Category name must be at least {NAME_MIN_LENGTH} characters")
    if len(clean) > NAME_MAX_LENGTH:
        raise CategoryValidationError(f"Category name must be less than {NAME_MAX_LENGTH} characters")
    return clean
