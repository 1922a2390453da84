"""Mapper functions to convert between domain models and SQLAlchemy models.

Condition alternatives are joined into the stored " || " string here and
nowhere else.
"""

from rulebook.domain import entities as domain
from rulebook.domain.entities import EntityKind
from rulebook.database.models import (
    Category as ORMCategory,
    Counterparty as ORMCounterparty,
    Location as ORMLocation,
    Rule as ORMRule,
    RuleCondition as ORMRuleCondition,
    TransactionType as ORMTransactionType,
)

ORMEntity = ORMCategory | ORMCounterparty | ORMLocation


def entity_model(kind: EntityKind) -> type[ORMEntity]:
    """Return the ORM model storing entities of ``kind``."""
    match kind:
        case EntityKind.CATEGORY:
            return ORMCategory
        case EntityKind.COUNTERPARTY:
            return ORMCounterparty
        case EntityKind.LOCATION:
            return ORMLocation
    raise ValueError(f"Unknown entity kind: {kind!r}")


def entity_to_domain(orm_entity: ORMEntity, kind: EntityKind) -> domain.ReferenceEntity:
    """Convert a SQLAlchemy entity row to a domain ReferenceEntity."""
    return domain.ReferenceEntity(
        id=orm_entity.id,
        name=orm_entity.name,
        kind=kind,
        parent_id=orm_entity.parent_id,
    )


def entity_to_orm(entity: domain.ReferenceEntity) -> ORMEntity:
    """Convert a domain ReferenceEntity to a new SQLAlchemy row."""
    model = entity_model(entity.kind)
    return model(id=entity.id, name=entity.name, parent_id=entity.parent_id)


def transaction_type_to_domain(orm_type: ORMTransactionType) -> domain.TransactionType:
    """Convert SQLAlchemy TransactionType model to domain TransactionType."""
    return domain.TransactionType(id=orm_type.id, name=orm_type.name)


def condition_to_domain(orm_condition: ORMRuleCondition) -> domain.RuleCondition:
    """Convert SQLAlchemy RuleCondition model to domain RuleCondition."""
    return domain.RuleCondition.from_value(
        id=orm_condition.condition_id,
        field=orm_condition.field,
        operator=orm_condition.operator,
        value=orm_condition.value,
        chain=orm_condition.chain or domain.ChainOperator.AND,
        kind=orm_condition.kind,
    )


def condition_to_orm(condition: domain.RuleCondition, position: int) -> ORMRuleCondition:
    """Convert a domain RuleCondition to a new SQLAlchemy row."""
    return ORMRuleCondition(
        position=position,
        condition_id=condition.id,
        kind=condition.kind,
        field=condition.field,
        operator=condition.operator,
        value=condition.value,
        chain=domain.ChainOperator(condition.chain).value,
    )


def rule_to_domain(orm_rule: ORMRule) -> domain.ReconciliationRule:
    """Convert SQLAlchemy Rule model to domain ReconciliationRule."""
    return domain.ReconciliationRule(
        id=orm_rule.id,
        name=orm_rule.name,
        conditions=tuple(condition_to_domain(c) for c in orm_rule.conditions),
        priority=orm_rule.priority,
        skip_import=orm_rule.skip_import,
        set_category_id=orm_rule.set_category_id,
        set_counterparty_id=orm_rule.set_counterparty_id,
        set_location_id=orm_rule.set_location_id,
        set_user_id=orm_rule.set_user_id,
        set_transaction_type_id=orm_rule.set_transaction_type_id,
        set_description=orm_rule.set_description,
        assign_tag_ids=tuple(orm_rule.assign_tag_ids or ()),
    )


def copy_rule_to_orm(rule: domain.ReconciliationRule, orm_rule: ORMRule) -> None:
    """Overwrite an ORM rule's columns and conditions from a domain rule."""
    orm_rule.name = rule.name
    orm_rule.priority = rule.priority
    orm_rule.skip_import = rule.skip_import
    orm_rule.set_category_id = rule.set_category_id
    orm_rule.set_counterparty_id = rule.set_counterparty_id
    orm_rule.set_location_id = rule.set_location_id
    orm_rule.set_user_id = rule.set_user_id
    orm_rule.set_transaction_type_id = rule.set_transaction_type_id
    orm_rule.set_description = rule.set_description
    orm_rule.assign_tag_ids = list(rule.assign_tag_ids)
    orm_rule.conditions = [
        condition_to_orm(condition, position)
        for position, condition in enumerate(rule.conditions)
    ]
