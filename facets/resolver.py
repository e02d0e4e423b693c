"""
Identifier resolver.

Category ids are only unique within a level, so a bare id coming from a
listing or a UI handler can denote a Domain, a Field or an Item at the same
time. ``resolve`` disambiguates with a fixed precedence:

1. exact name match among Items
2. exact name match among Fields (empty Fields included)
3. Domain by name, then Domain by id (Domain-structured nodes only)
4. Field by id
5. Item by id

Changing this order reattributes counts to the wrong subtree whenever ids
collide. A ``level_hint`` short-circuits the chain when the tagged node exists
and does not contradict the supplied name. A ``NodeRef`` is looked up as-is.
"""
import logging
from typing import Any, Optional, Union

from .models import CategoryLevel, LocationLevel, LocationRef, NodeRef
from .taxonomy import CategoryTree, LocationTree
from .utils import clean_text, to_int

logger = logging.getLogger(__name__)


def _find_by_name(tree: CategoryTree, level: CategoryLevel, name: str, require_structure: bool = False) -> Optional[NodeRef]:
    for node in tree.nodes(level):
        if node.name != name:
            continue
        if require_structure and not node.looks_like_domain:
            continue
        return node.ref
    return None


def _find_by_id(tree: CategoryTree, level: CategoryLevel, node_id: int, require_structure: bool = False) -> Optional[NodeRef]:
    node = tree.node(NodeRef(level, node_id))
    if node is None:
        return None
    if require_structure and not node.looks_like_domain:
        return None
    return node.ref


def resolve(
    tree: CategoryTree,
    node_id: Any,
    name: Optional[str] = None,
    level_hint: Optional[CategoryLevel] = None,
) -> Optional[NodeRef]:
    """Resolve a raw category id (and optional display name) to a tagged ref; None is NotFound."""
    if isinstance(node_id, NodeRef):
        # Tagged refs come from the tree itself and are never reinterpreted
        node = tree.node(node_id)
        return node.ref if node is not None else None
    numeric_id = to_int(node_id)
    name = clean_text(name) or None

    if level_hint is not None and numeric_id is not None:
        hinted = tree.node(NodeRef(level_hint, numeric_id))
        if hinted is not None and (name is None or hinted.name.casefold() == name.casefold()):
            return hinted.ref

    if name is not None:
        ref = _find_by_name(tree, CategoryLevel.ITEM, name)
        if ref is not None:
            return ref
        ref = _find_by_name(tree, CategoryLevel.FIELD, name)
        if ref is not None:
            return ref
        ref = _find_by_name(tree, CategoryLevel.DOMAIN, name, require_structure=True)
        if ref is not None:
            return ref

    if numeric_id is None:
        logger.debug(f"Unresolvable category reference id={node_id!r} name={name!r}")
        return None

    for level, structural in (
        (CategoryLevel.DOMAIN, True),
        (CategoryLevel.FIELD, False),
        (CategoryLevel.ITEM, False),
    ):
        ref = _find_by_id(tree, level, numeric_id, require_structure=structural)
        if ref is not None:
            return ref

    logger.debug(f"Category reference not found: id={numeric_id} name={name!r}")
    return None


LocationTarget = Union[NodeRef, LocationRef]


def resolve_location(tree: LocationTree, ref: Any) -> Optional[LocationTarget]:
    """
    Normalize a location reference.

    Branches are given as ``NodeRef`` (or ``"province:3"``); leaves as a
    ``LocationRef``, a bare ward id or a ``"ward-index"`` composite. Unknown
    wards and out-of-range address indexes are NotFound.
    """
    if isinstance(ref, str) and ":" in ref:
        ref = NodeRef.parse(ref)
        if ref is None:
            return None
    if isinstance(ref, NodeRef):
        if ref.level is LocationLevel.WARD:
            ref = LocationRef(ref.id)
        elif ref.level is LocationLevel.LOCAL_ADDRESS or not isinstance(ref.level, LocationLevel):
            return None
        else:
            return ref if tree.node(ref) is not None else None

    composite = LocationRef.parse(ref)
    if composite is None or not tree.contains(composite):
        logger.debug(f"Location reference not found: {ref!r}")
        return None
    return composite
