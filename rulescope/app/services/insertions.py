"""Detection of the fact types a rule action inserts.

Only the construct-and-insert shape is recognised::

    insert(Order(...))
    engine.insert_unconditional(models.Invoice(total=1))
    insert_all([Alert(...), Alert(...)])

The insert function must be one of ``settings.INSERT_FUNCTIONS``, called
with exactly one positional argument, and the constructed callee's last
name segment must start with an uppercase letter.
Insertions made through helper functions or computed values are missed.
"""
import ast
import logging
import textwrap
from typing import Iterable, Iterator, Optional, Set

from ..core.config import settings

logger = logging.getLogger(__name__)


def dotted_name(node: ast.AST) -> Optional[str]:
    """``a.b.C`` for Name/Attribute chains, None for anything else."""
    parts = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    return ".".join(reversed(parts))


def _constructed_type(node: ast.AST) -> Optional[str]:
    if not isinstance(node, ast.Call):
        return None
    name = dotted_name(node.func)
    if name and name.rsplit(".", 1)[-1][:1].isupper():
        return name
    return None


def _inserted_values(call: ast.Call) -> Iterator[ast.AST]:
    # Exactly one positional argument: the fact or a collection of facts
    if len(call.args) != 1:
        return
    arg = call.args[0]
    if isinstance(arg, ast.Starred):
        arg = arg.value
    if isinstance(arg, (ast.List, ast.Tuple, ast.Set)):
        yield from arg.elts
    else:
        yield arg


def find_insertions(action: Optional[str], insert_functions: Optional[Iterable[str]] = None) -> Set[str]:
    """
    Return the type names constructed and inserted by an action.

    Args:
        action: Python source of the rule's action, or None
        insert_functions: Names of insert functions (default: settings.INSERT_FUNCTIONS)

    Returns:
        Set of dotted type names as written in the action. Unparseable
        actions yield an empty set.
    """
    if not action or not action.strip():
        return set()

    functions = set(insert_functions if insert_functions is not None else settings.INSERT_FUNCTIONS)

    try:
        tree = ast.parse(textwrap.dedent(action))
    except (SyntaxError, ValueError) as e:
        logger.warning(f"Skipping insertion detection for unparseable action: {e}")
        return set()

    inserted: Set[str] = set()
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        callee = dotted_name(node.func)
        if callee is None or callee.rsplit(".", 1)[-1] not in functions:
            continue
        for arg in _inserted_values(node):
            fact_type = _constructed_type(arg)
            if fact_type:
                inserted.add(fact_type)
    return inserted
