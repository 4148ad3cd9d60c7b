"""
Path extraction over FHIR-shaped records.

Traversal works on collections: every step maps the current list of nodes to
a new list, flattening list-valued fields one level and dropping missing or
null values. The final collection is collapsed for convenience: a single
value is returned bare, several values as a list, and nothing as ``None``.
Callers that need the raw collection use :func:`evaluate_path`.
"""

from typing import Any, Dict, Iterator, List, Union

from .parser import CompiledPath, DescendantStep, FieldStep, Step, WhereStep, compile_path
from .values import stringify

PathLike = Union[str, CompiledPath]


def _as_compiled(path: PathLike) -> CompiledPath:
    if isinstance(path, CompiledPath):
        return path
    return compile_path(path)


def _children(node: Any, name: str) -> List[Any]:
    if not isinstance(node, dict):
        return []
    value = node.get(name)
    if value is None:
        return []
    if isinstance(value, list):
        return [item for item in value if item is not None]
    return [value]


def _descendants(node: Any, name: str) -> Iterator[Any]:
    if isinstance(node, list):
        for item in node:
            yield from _descendants(item, name)
    elif isinstance(node, dict):
        for key, value in node.items():
            if key == name:
                yield from _children(node, name)
            yield from _descendants(value, name)


def _matches_filter(node: Any, step: WhereStep) -> bool:
    if not isinstance(node, dict):
        return False
    value = node.get(step.field)
    if value is None:
        return False
    if isinstance(value, list):
        return any(item is not None and stringify(item) == step.literal for item in value)
    return stringify(value) == step.literal


def _apply_step(nodes: List[Any], step: Step) -> List[Any]:
    if isinstance(step, FieldStep):
        return [child for node in nodes for child in _children(node, step.name)]
    if isinstance(step, DescendantStep):
        return [child for node in nodes for child in _descendants(node, step.name)]
    if isinstance(step, WhereStep):
        return [node for node in nodes if _matches_filter(node, step)]
    raise TypeError(f"Unknown path step: {step!r}")


def evaluate_path(record: Dict[str, Any], path: PathLike) -> List[Any]:
    """Evaluate a path against a record and return the full result collection."""
    compiled = _as_compiled(path)
    if not isinstance(record, dict) or record.get("resourceType") != compiled.root:
        return []

    nodes: List[Any] = [record]
    for step in compiled.steps:
        nodes = _apply_step(nodes, step)
        if not nodes:
            break
    return nodes


def collapse(values: List[Any]) -> Any:
    """One value -> the value, many -> the list, none -> None."""
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return values


def extract(record: Dict[str, Any], path: PathLike) -> Any:
    """Extract a value from a record.

    Args:
        record: FHIR-shaped record with a ``resourceType``
        path: Path expression or a previously compiled path

    Returns:
        The single matching value, a list of values, or None

    Raises:
        InvalidPathError: if ``path`` is a string that does not compile
    """
    return collapse(evaluate_path(record, path))
