"""
Selection store for the category and location facets.

Selections are immutable values; every toggle returns a new selection. Only
Item membership is stored for categories. Domain/Field flags are derived
from it on demand, so they can never drift from the Items beneath them.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Optional, Tuple

from .models import CategoryLevel, CheckState, LocationLevel, LocationRef, NodeRef
from .resolver import resolve, resolve_location
from .taxonomy import CategoryTree, LocationTree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategorySelection:
    items: FrozenSet[int] = frozenset()
    # Branches selected while their subtree holds no Items
    pinned: FrozenSet[NodeRef] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.items and not self.pinned


@dataclass(frozen=True)
class LocationSelection:
    refs: FrozenSet[LocationRef] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.refs

    def encoded(self):
        """Refs in their wire form: ints for wards, ``"ward-index"`` for addresses."""
        return sorted(
            (ref.ward_id if ref.is_ward else str(ref) for ref in self.refs),
            key=str,
        )


@dataclass(frozen=True)
class SelectionState:
    category: CategorySelection = field(default_factory=CategorySelection)
    location: LocationSelection = field(default_factory=LocationSelection)

    def reset(self) -> "SelectionState":
        return SelectionState()


def _select_all_or_none(current: FrozenSet, leaves: FrozenSet) -> FrozenSet:
    # Partial or empty resolves to "select all"; only a full subtree deselects
    if leaves <= current:
        return current - leaves
    return current | leaves


def _is_within(tree: CategoryTree, ref: NodeRef, ancestor: NodeRef) -> bool:
    while ref is not None:
        if ref == ancestor:
            return True
        ref = tree.parent(ref)
    return False


def toggle_category_branch(
    selection: CategorySelection,
    tree: CategoryTree,
    ref: Any,
    name: Optional[str] = None,
) -> CategorySelection:
    """Select every Item under ``ref`` unless all of them are already selected."""
    target = resolve(tree, ref, name)
    if target is None:
        logger.debug(f"Category toggle ignored, unresolvable ref {ref!r}")
        return selection

    leaves = tree.items_under(target)
    if not leaves:
        return CategorySelection(selection.items, selection.pinned ^ {target})

    if leaves <= selection.items:
        pinned = frozenset(p for p in selection.pinned if not _is_within(tree, p, target))
        return CategorySelection(selection.items - leaves, pinned)
    return CategorySelection(selection.items | leaves, selection.pinned)


def clear_category() -> CategorySelection:
    return CategorySelection()


def leaf_check_state(selected: FrozenSet, leaves: FrozenSet) -> CheckState:
    """CHECKED when every leaf is selected, PARTIAL when some are."""
    chosen = leaves & selected
    if leaves and chosen == leaves:
        return CheckState.CHECKED
    return CheckState.PARTIAL if chosen else CheckState.UNCHECKED


def category_check_state(selection: CategorySelection, tree: CategoryTree, ref: NodeRef) -> CheckState:
    leaves = tree.items_under(ref)
    if not leaves:
        return CheckState.CHECKED if ref in selection.pinned else CheckState.UNCHECKED
    return leaf_check_state(selection.items, leaves)


def _selected_ids(selection: CategorySelection, tree: CategoryTree, level: CategoryLevel) -> FrozenSet[int]:
    return frozenset(
        node.id for node in tree.nodes(level)
        if category_check_state(selection, tree, node.ref) is CheckState.CHECKED
    )


def selected_domains(selection: CategorySelection, tree: CategoryTree) -> FrozenSet[int]:
    return _selected_ids(selection, tree, CategoryLevel.DOMAIN)


def selected_fields(selection: CategorySelection, tree: CategoryTree) -> FrozenSet[int]:
    return _selected_ids(selection, tree, CategoryLevel.FIELD)


def expand_category(selection: CategorySelection, tree: CategoryTree) -> Tuple[bool, FrozenSet[int]]:
    """
    Expand the selected Domains, Fields and Items into the Item ids to filter by.

    Returns ``(active, item_ids)``. ``active`` with an empty id set means the
    user selected something that holds no Items, which matches nothing.
    """
    domains = selected_domains(selection, tree)
    fields = selected_fields(selection, tree)
    item_ids = set(selection.items)
    for domain_id in domains:
        item_ids |= tree.items_under(NodeRef(CategoryLevel.DOMAIN, domain_id))
    for field_id in fields:
        item_ids |= tree.items_under(NodeRef(CategoryLevel.FIELD, field_id))
    active = bool(item_ids or domains or fields or selection.pinned)
    return active, frozenset(item_ids)


def _location_leaves(tree: LocationTree, target) -> FrozenSet[LocationRef]:
    if isinstance(target, LocationRef):
        if target.is_ward:
            return tree.leaves_under(NodeRef(LocationLevel.WARD, target.ward_id))
        return frozenset([target])
    return tree.leaves_under(target)


def toggle_location_branch(selection: LocationSelection, tree: LocationTree, ref: Any) -> LocationSelection:
    """Select every ward and ward-address composite under ``ref`` unless all are selected."""
    target = resolve_location(tree, ref)
    if target is None:
        logger.debug(f"Location toggle ignored, unresolvable ref {ref!r}")
        return selection
    leaves = _location_leaves(tree, target)
    if not leaves:
        return selection
    return LocationSelection(_select_all_or_none(selection.refs, leaves))


def toggle_location_leaf(selection: LocationSelection, tree: LocationTree, composite_ref: Any) -> LocationSelection:
    """Flip one ward (as a whole) or one specific address."""
    target = resolve_location(tree, composite_ref)
    if not isinstance(target, LocationRef):
        logger.debug(f"Location leaf toggle ignored, not a ward/address ref {composite_ref!r}")
        return selection
    return LocationSelection(selection.refs ^ {target})


def clear_location() -> LocationSelection:
    return LocationSelection()


def location_check_state(selection: LocationSelection, tree: LocationTree, ref: Any) -> CheckState:
    target = resolve_location(tree, ref)
    if target is None:
        return CheckState.UNCHECKED
    return leaf_check_state(selection.refs, _location_leaves(tree, target))
