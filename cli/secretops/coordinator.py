#!/usr/bin/env python3

VERSION = "v0.1.0/2026-10-19"

"""
Create-or-update, delete, and list records across the secret and parameter
stores while keeping provenance tags consistent.

Identity and time are injected: the coordinator never looks up the current
user or reads the wall clock on its own.

Usage:
from secretops.coordinator import UpsertCoordinator
from secretops.records import RecordKind
from secretops.tags import TagUtils

coordinator = UpsertCoordinator(
    {RecordKind.SECRET: secrets_store, RecordKind.PARAMETER: parameter_store},
    actor="alice",
    clock=utc_now,
)
tags = TagUtils.created_tags("alice", utc_now)
outcome = coordinator.upsert("prod/aws/secret-key", "abc123", RecordKind.SECRET, tags)
"""

import logging
from typing import Iterable, Iterator, Mapping, Optional, Sequence

from secretops.records import (
    Created,
    Deleted,
    DeleteOutcome,
    NotFound,
    PartialTagUpdate,
    RecordKind,
    RecordRef,
    RecordValue,
    StoreError,
    TransientUnavailable,
    Updated,
    UpsertOutcome,
    ValidationFailed,
)
from secretops.stores import RecordStore
from secretops.tags import CREATED_BY, Clock, TagUtils, utc_now

logger = logging.getLogger(__name__)

# create -> conflict -> update may find the record gone if another process
# deleted it in between; go around once more before giving up
MAX_CREATE_ATTEMPTS = 2


class RecordListing:
    """Restartable, lazy listing of records matching a tag filter.

    Every iteration starts a fresh listing against the stores, so results
    reflect the stores at the time they are iterated.
    """

    def __init__(self, stores: Sequence[RecordStore], tag_filter: Mapping[str, str]):
        self.stores = list(stores)
        self.tag_filter = dict(tag_filter)

    def __iter__(self) -> Iterator[RecordRef]:
        for store in self.stores:
            yield from store.list_records(self.tag_filter)


class UpsertCoordinator:

    def __init__(self, stores: Mapping[RecordKind, RecordStore], actor: str,
                 clock: Clock = utc_now, force_delete: bool = True):
        """
        Args:
            stores (Mapping[RecordKind, RecordStore]): Gateway for each kind
            actor (str): Identity recorded in DeletedBy audit tags
            clock (Clock): Source of the current time for audit tags
            force_delete (bool): Delete secrets without a recovery window
        """
        self.stores = dict(stores)
        self.actor = actor
        self.clock = clock
        self.force_delete = force_delete

    def _store(self, kind: RecordKind) -> RecordStore:
        try:
            return self.stores[kind]
        except KeyError:
            raise ValidationFailed(f"No store configured for kind '{kind.value}'")

    @staticmethod
    def _validate(name: str, value: Optional[RecordValue], kind: RecordKind, tags: Mapping[str, str]) -> None:
        if not name or not name.strip():
            raise ValidationFailed("Record name cannot be empty")
        if value is None:
            raise ValidationFailed(f"No value given for {kind.label.lower()} '{name}'")
        if kind is RecordKind.SECRET and len(value) == 0:
            raise ValidationFailed(f"Secret value cannot be empty for '{name}'")
        errors = TagUtils.validate(tags)
        if errors:
            raise ValidationFailed(f"Invalid tags for '{name}': {'; '.join(errors)}")

    # -------------------------------------------------------------------------
    # Upsert
    # -------------------------------------------------------------------------

    def upsert(self, name: str, value: RecordValue, kind: RecordKind, tags: Mapping[str, str],
               description: Optional[str] = None, preserve_keys: Iterable[str] = ()) -> UpsertOutcome:
        """Ensure exactly one record named `name` exists with `value` and `tags`

        Tries a create with the tags attached. If the store reports the name
        is taken, writes the value and then merges the tags in a second call.

        Args:
            name (str): Record name
            value (RecordValue): Value to store
            kind (RecordKind): Store to write to
            tags (Mapping[str, str]): Tags to attach or merge
            description (str, optional): Description used when creating
            preserve_keys (Iterable[str]): Tag keys written on update only if
                the record does not carry them yet

        Returns:
            UpsertOutcome: Created, Updated, or PartialTagUpdate when the value
                was written but the tag merge failed

        Raises:
            ValidationFailed, NotAuthorized, TransientUnavailable, StoreError
        """
        self._validate(name, value, kind, tags)
        store = self._store(kind)

        for attempt in range(1, MAX_CREATE_ATTEMPTS + 1):
            outcome = store.create_record(name, value, tags, description)
            if isinstance(outcome, Created):
                logger.info(outcome.summary())
                return outcome

            logger.info(f"{kind.label} {name} already exists, updating value")
            ref = store.update_value(name, value)
            if ref is not None:
                return self._merge_after_update(store, ref, tags, preserve_keys)

            logger.warning(f"{kind.label} {name} disappeared before its value could be updated "
                           f"(attempt {attempt}/{MAX_CREATE_ATTEMPTS})")

        raise TransientUnavailable(
            f"{kind.label} '{name}' kept disappearing during upsert; retry the operation",
            operation="upsert",
        )

    def _merge_after_update(self, store: RecordStore, ref: RecordRef, tags: Mapping[str, str],
                            preserve_keys: Iterable[str]) -> UpsertOutcome:
        """Second step of the update path. Failures here never undo the value."""
        preserve_keys = tuple(preserve_keys)
        try:
            to_merge = dict(tags)
            if preserve_keys:
                meta = store.describe_record(ref.name)
                existing = meta.tags if meta is not None else {}
                to_merge = TagUtils.missing_only(tags, existing, preserve_keys)

            if not store.merge_tags(ref.name, to_merge):
                raise StoreError(f"{ref} no longer exists", operation="merge_tags")

        except StoreError as e:
            outcome = PartialTagUpdate(ref, e)
            logger.warning(outcome.summary())
            return outcome

        outcome = Updated(ref)
        logger.info(outcome.summary())
        return outcome

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def delete(self, name: str, kind: RecordKind, force: Optional[bool] = None) -> DeleteOutcome:
        """Delete a record if it exists

        Audit tags (DeletedBy/DeletedAt) are attached first on a best-effort
        basis; failing to attach them does not stop the delete.

        Returns:
            DeleteOutcome: Deleted, or NotFound if there was nothing to delete
        """
        if not name or not name.strip():
            raise ValidationFailed("Record name cannot be empty")
        store = self._store(kind)
        force = self.force_delete if force is None else force

        meta = store.describe_record(name)
        if meta is None:
            outcome = NotFound(name, kind)
            logger.warning(outcome.summary())
            return outcome

        audit_tagged, warning = True, None
        try:
            if not store.merge_tags(name, TagUtils.deleted_tags(self.actor, self.clock)):
                outcome = NotFound(name, kind)
                logger.warning(outcome.summary())
                return outcome
        except StoreError as e:
            audit_tagged, warning = False, e.summary()
            logger.warning(f"Could not attach audit tags to {meta.ref}: {warning}")

        ref = store.delete_record(name, force=force)
        if ref is None:
            outcome = NotFound(name, kind)
            logger.warning(outcome.summary())
            return outcome

        outcome = Deleted(RecordRef(name, kind, ref.arn or meta.ref.arn), audit_tagged, warning)
        logger.info(outcome.summary())
        return outcome

    # -------------------------------------------------------------------------
    # List
    # -------------------------------------------------------------------------

    def list(self, actor: str, kinds: Optional[Iterable[RecordKind]] = None) -> RecordListing:
        """Records whose CreatedBy tag equals `actor`, secrets first then parameters"""
        kinds = list(kinds) if kinds else [RecordKind.SECRET, RecordKind.PARAMETER]
        stores = [self._store(kind) for kind in kinds]
        return RecordListing(stores, {CREATED_BY: actor})
