"""Data models for rulescope."""
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.identity import type_name


class ConditionKind(str, Enum):
    """Closed set of left-hand-side condition kinds."""
    FACT = "fact"
    ACCUMULATOR = "accumulator"
    AND = "and"
    OR = "or"
    NOT = "not"


BOOLEAN_KINDS = frozenset({ConditionKind.AND, ConditionKind.OR, ConditionKind.NOT})


class FactCondition(BaseModel):
    """Match of a single fact of the given type."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["fact"] = "fact"
    type: str
    constraints: List[str] = Field(default_factory=list)
    fact_binding: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _symbolic_type(cls, value: Any) -> Any:
        # Class objects never travel past this point
        if isinstance(value, type):
            return type_name(value)
        return value


class AccumulatorCondition(BaseModel):
    """Aggregate over the facts matched by an inner fact condition."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["accumulator"] = "accumulator"
    accumulator: str
    from_: FactCondition = Field(alias="from")
    result_binding: Optional[str] = None


class BooleanCondition(BaseModel):
    """and / or / not combinator over child conditions."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["and", "or", "not"]
    children: List["Condition"] = Field(default_factory=list)


Condition = Annotated[
    Union[FactCondition, AccumulatorCondition, BooleanCondition],
    Field(discriminator="kind"),
]

BooleanCondition.model_rebuild()


class Production(BaseModel):
    """A rule or query: left-hand-side conditions plus an optional action."""
    name: Optional[str] = None
    lhs: List[Condition] = Field(default_factory=list)
    rhs: Optional[str] = None  # action source text
    props: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# Graph export boundary
# ============================================================================

class NodeExport(BaseModel):
    """A node as exchanged with callers."""
    type: str
    value: Any = None


class EdgeExport(BaseModel):
    """An edge as exchanged with callers; the (from, to) key is flattened."""
    model_config = ConfigDict(populate_by_name=True)

    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")
    type: str
    value: Any = None


class GraphExport(BaseModel):
    """Serializable form of a graph."""
    nodes: Dict[str, NodeExport] = Field(default_factory=dict)
    edges: List[EdgeExport] = Field(default_factory=list)


# ============================================================================
# API requests
# ============================================================================

class LogicGraphRequest(BaseModel):
    """Rules to build a logic graph from: named rule files and/or inline rules."""
    sources: List[str] = Field(default_factory=list)
    rules: List[Production] = Field(default_factory=list)


class FilterLogicGraphRequest(LogicGraphRequest):
    """Logic graph restricted to the neighbourhood of matching fact types."""
    pattern: str


class ExplainRequest(BaseModel):
    """Fact identifiers to explain, all read from one session snapshot."""
    fact_ids: List[str]


class WalkRequest(BaseModel):
    """Traverse an exported graph from one node."""
    graph: GraphExport
    node_id: str
    direction: Literal["to", "from"] = "from"
