"""Condition tree decomposition.

A rule's left-hand side is normalized into a single rooted tree (an implicit
``and`` wraps the conditions unless there is exactly one) and every node of
that tree gets a slot id ``"<position>-<rule content id>"`` following a
pre-order walk. Slots record their children's ids, so repeated identical
sub-expressions stay distinct.
"""
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence

from ..models.schemas import BOOLEAN_KINDS, BooleanCondition, ConditionKind


class UnsupportedConditionError(ValueError):
    """A condition's kind is outside the closed set of condition kinds."""


@dataclass
class ConditionSlot:
    """One node of a decomposed condition tree."""
    id: str
    condition: Any
    kind: ConditionKind
    child_ids: List[str] = field(default_factory=list)


def classify_condition(condition: Any) -> ConditionKind:
    """Return the kind tag of a condition model or condition mapping."""
    if isinstance(condition, Mapping):
        tag = condition.get("kind")
    else:
        tag = getattr(condition, "kind", None)
    try:
        return ConditionKind(tag)
    except ValueError:
        raise UnsupportedConditionError(f"Unsupported condition kind: {tag!r}") from None


def condition_children(condition: Any) -> Sequence[Any]:
    if isinstance(condition, Mapping):
        return condition.get("children", [])
    return getattr(condition, "children", [])


def root_condition(lhs: Sequence[Any]) -> Any:
    """The single root of a left-hand side, adding the implied top-level and."""
    if len(lhs) == 1:
        return lhs[0]
    return BooleanCondition.model_construct(kind="and", children=list(lhs))


def decompose(lhs: Sequence[Any], rule_id: str) -> List[ConditionSlot]:
    """
    Decompose a left-hand side into condition slots in pre-order.

    Args:
        lhs: The rule's condition list
        rule_id: Content identifier of the owning rule

    Returns:
        Slots in traversal order; the first one is the tree root.
    """
    slots: List[ConditionSlot] = []

    def visit(condition: Any) -> str:
        kind = classify_condition(condition)
        slot = ConditionSlot(id=f"{len(slots)}-{rule_id}", condition=condition, kind=kind)
        slots.append(slot)
        if kind in BOOLEAN_KINDS:
            slot.child_ids = [visit(child) for child in condition_children(condition)]
        return slot.id

    visit(root_condition(lhs))
    return slots
