"""
Generic persistence operations over the Django ORM.

ContentRepository is the single write path used by the importers. It maps
ORM failures onto the cms exception types:

- IntegrityError on a unique key -> UniqueConstraintError
- DoesNotExist on update/delete   -> NotFoundError

upsert_by_key() looks the row up by its natural key (slug, setting key) and
updates it, or creates it. If the create collides because another writer
inserted the same key in between, it falls back to updating by key.
"""

import logging
from typing import Any, Dict, Optional, Tuple, Type

from django.db import IntegrityError, models, transaction

from cms.exceptions import NotFoundError, UniqueConstraintError

logger = logging.getLogger(__name__)


class ContentRepository:
    """Create/read/update/delete/upsert-by-key for any cms model."""

    def find_by_key(
        self, model: Type[models.Model], key_field: str, key: Any
    ) -> Optional[models.Model]:
        return model.objects.filter(**{key_field: key}).first()

    def create(self, model: Type[models.Model], fields: Dict[str, Any]) -> models.Model:
        """
        Insert a new row.

        Raises:
            UniqueConstraintError: A unique column already holds the value
        """
        try:
            with transaction.atomic():
                return model.objects.create(**fields)
        except IntegrityError as e:
            raise UniqueConstraintError(
                f"{model.__name__} violates a unique constraint: {e}"
            ) from e

    def update(self, model: Type[models.Model], pk: Any, fields: Dict[str, Any]) -> models.Model:
        """
        Update an existing row by primary key.

        Raises:
            NotFoundError: No row with that primary key
            UniqueConstraintError: The update collides with another row's key
        """
        try:
            instance = model.objects.get(pk=pk)
        except model.DoesNotExist as e:
            raise NotFoundError(f"{model.__name__} {pk} not found") from e
        return self._apply(instance, fields)

    def update_by_key(
        self, model: Type[models.Model], key_field: str, key: Any, fields: Dict[str, Any]
    ) -> models.Model:
        instance = self.find_by_key(model, key_field, key)
        if instance is None:
            raise NotFoundError(f"{model.__name__} with {key_field}={key!r} not found")
        return self._apply(instance, fields)

    def delete(self, model: Type[models.Model], pk: Any) -> None:
        deleted, _ = model.objects.filter(pk=pk).delete()
        if not deleted:
            raise NotFoundError(f"{model.__name__} {pk} not found")

    def upsert_by_key(
        self,
        model: Type[models.Model],
        key_field: str,
        key: Any,
        create_fields: Dict[str, Any],
        update_fields: Dict[str, Any],
    ) -> Tuple[models.Model, bool]:
        """
        Update the row identified by key, or create it.

        Args:
            model: Model class
            key_field: Natural key column, e.g. "slug" or "key"
            key: Natural key value
            create_fields: Columns written when the row is new (key included automatically)
            update_fields: Columns written when the row already exists

        Returns:
            (instance, created)
        """
        existing = self.find_by_key(model, key_field, key)
        if existing is not None:
            return self._apply(existing, update_fields), False

        try:
            return self.create(model, {key_field: key, **create_fields}), True
        except UniqueConstraintError:
            # Race condition - row was created between lookup and insert
            logger.warning(
                f"{model.__name__} {key_field}={key!r} appeared during upsert, updating instead"
            )
            return self.update_by_key(model, key_field, key, update_fields), False

    def _apply(self, instance: models.Model, fields: Dict[str, Any]) -> models.Model:
        if not fields:
            return instance
        for name, value in fields.items():
            setattr(instance, name, value)
        try:
            with transaction.atomic():
                instance.save()
        except IntegrityError as e:
            raise UniqueConstraintError(
                f"{type(instance).__name__} violates a unique constraint: {e}"
            ) from e
        return instance
