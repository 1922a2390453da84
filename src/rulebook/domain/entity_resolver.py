"""Resolve suggested entity names against registries during an import batch.

A suggested name either matches an existing entity (case-insensitive,
whitespace-normalized) or becomes a pending creation. Creations are
deduplicated within one batch, so two drafts proposing "Costco" and
" costco " end up pointing at a single new counterparty.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from rulebook.domain.entities import EntityKind, MappingMode, ReferenceEntity
from rulebook.domain.errors import MappingInconsistency
from rulebook.utils.text import normalize_name

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_id() -> str:
    """Mint a new entity or rule id."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Resolution:
    """Result of resolving one suggested name."""

    entity_id: Optional[str]
    created: Optional[ReferenceEntity] = None
    inconsistency: Optional[MappingInconsistency] = None


def find_by_name(
    registry: Iterable[ReferenceEntity], name: Optional[str]
) -> Optional[ReferenceEntity]:
    """Find an entity by normalized name, or None."""
    key = normalize_name(name)
    if not key:
        return None
    for entity in registry:
        if normalize_name(entity.name) == key:
            return entity
    return None


def resolve_entity(
    kind: EntityKind,
    suggested_name: Optional[str],
    status: MappingMode | str,
    registry: Iterable[ReferenceEntity],
    batch_created: dict[str, str],
    id_factory: IdFactory = new_id,
) -> Resolution:
    """Resolve a suggested name to an entity id.

    Args:
        kind: Entity kind being resolved
        suggested_name: Name proposed by the draft
        status: "match" to look the name up, "create" to create it
        registry: Existing entities of this kind
        batch_created: Normalized name -> id of entities created earlier in
            this batch; updated in place when a new entity is minted
        id_factory: Id generator for new entities

    Returns:
        Resolution with the entity id, the pending creation (if a new entity
        was minted) and a MappingInconsistency when a "match" hint failed.
        A blank name resolves to no entity.
    """
    key = normalize_name(suggested_name)
    if not key:
        return Resolution(entity_id=None)

    inconsistency = None
    if MappingMode(status) == MappingMode.MATCH:
        existing = find_by_name(registry, suggested_name)
        if existing is not None:
            return Resolution(entity_id=existing.id)
        inconsistency = MappingInconsistency(kind.value, suggested_name.strip())
        logger.warning("%s", inconsistency)

    if key in batch_created:
        return Resolution(entity_id=batch_created[key], inconsistency=inconsistency)

    created = ReferenceEntity(id=id_factory(), name=suggested_name.strip(), kind=kind)
    batch_created[key] = created.id
    logger.debug("Pending %s creation '%s' (%s)", kind.value, created.name, created.id)
    return Resolution(entity_id=created.id, created=created, inconsistency=inconsistency)


class EntityResolver:
    """Entity resolution state for a single import batch.

    Holds the registries snapshot, one dedupe map per kind, and the pending
    creations in first-seen order. Create a new resolver for every batch.
    """

    def __init__(
        self,
        registries: dict[EntityKind, list[ReferenceEntity]],
        id_factory: IdFactory = new_id,
    ):
        """Initialize resolver.

        Args:
            registries: Existing entities per kind
            id_factory: Id generator for new entities
        """
        self.registries = {kind: list(registries.get(kind, ())) for kind in EntityKind}
        self.id_factory = id_factory
        self._batch_created: dict[EntityKind, dict[str, str]] = {kind: {} for kind in EntityKind}
        self._pending: dict[EntityKind, list[ReferenceEntity]] = {kind: [] for kind in EntityKind}
        self.inconsistencies: list[MappingInconsistency] = []

    def resolve(
        self, kind: EntityKind, suggested_name: Optional[str], status: MappingMode | str
    ) -> Optional[str]:
        """Resolve a name, recording creations and inconsistencies."""
        resolution = resolve_entity(
            kind,
            suggested_name,
            status,
            self.registries[kind],
            self._batch_created[kind],
            self.id_factory,
        )
        if resolution.created is not None:
            self._pending[kind].append(resolution.created)
        if resolution.inconsistency is not None:
            self.inconsistencies.append(resolution.inconsistency)
        return resolution.entity_id

    def pending_creations(self) -> dict[EntityKind, list[ReferenceEntity]]:
        """Entities to create, per kind, omitting kinds with none."""
        return {kind: list(items) for kind, items in self._pending.items() if items}
