"""Rule sources - where productions come from."""
import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Protocol, runtime_checkable

import yaml

from ..core.config import settings
from ..models.schemas import Production

logger = logging.getLogger(__name__)

RULE_FILE_SUFFIXES = (".json", ".yaml", ".yml")


@runtime_checkable
class RuleSource(Protocol):
    """Anything that can produce a sequence of productions."""

    def load_rules(self) -> List[Production]:
        ...


class RuleFileSource:
    """
    Rules stored in a JSON or YAML file.

    The file holds either a list of productions or a mapping with a
    ``rules`` list. Each production gets ``metadata["source"]`` set to the
    file it came from.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_rules(self) -> List[Production]:
        if self.path.suffix.lower() not in RULE_FILE_SUFFIXES:
            raise ValueError(f"Unsupported rule file type: {self.path.suffix}")

        with open(self.path, 'r') as f:
            if self.path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)

        if isinstance(data, dict):
            data = data.get('rules', [])
        if not isinstance(data, list):
            raise ValueError(f"Rule file must contain a list of rules: {self.path}")

        productions = []
        for rule_data in data:
            production = Production.model_validate(rule_data)
            production.metadata.setdefault('source', str(self.path))
            productions.append(production)

        logger.info(f"Loaded {len(productions)} rules from {self.path}")
        return productions

    def __repr__(self) -> str:
        return f"RuleFileSource({str(self.path)!r})"


def get_productions(sources: Iterable[Any]) -> List[Production]:
    """
    Flatten rule sources into a list of productions.

    Each element is either a RuleSource or an iterable of productions
    (Production instances or mappings validated into them).
    """
    productions: List[Production] = []
    for source in sources:
        if isinstance(source, RuleSource):
            productions.extend(source.load_rules())
        else:
            productions.extend(Production.model_validate(p) for p in source)
    return productions


def resolve_rule_source(name: str, rules_dir: Optional[Path] = None) -> RuleFileSource:
    """
    Resolve a rule file name relative to the rules directory.

    Raises:
        FileNotFoundError: no such rule file, or the name escapes the directory
    """
    base = Path(rules_dir or settings.RULES_DIR).resolve()
    path = (base / name).resolve()
    if base not in path.parents or not path.is_file():
        raise FileNotFoundError(f"Rule source not found: {name}")
    return RuleFileSource(path)


def list_rule_sources(rules_dir: Optional[Path] = None) -> List[str]:
    """Rule files available under the rules directory, relative to it."""
    base = Path(rules_dir or settings.RULES_DIR)
    if not base.exists():
        return []
    return sorted(
        str(p.relative_to(base)) for p in base.rglob("*")
        if p.is_file() and p.suffix.lower() in RULE_FILE_SUFFIXES
    )
