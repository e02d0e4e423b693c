"""
Taxonomy model: normalizes raw category and location payloads into tagged trees.

Both builders fail soft. A malformed node is skipped with a log line and the
rest of the tree is still built.
"""
import logging
from collections import OrderedDict
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from .models import (
    CategoryLevel, CategoryNode, LocationLevel, LocationNode, LocationRef,
    NodeRef, Ward,
)
from .utils import clean_text, to_int

logger = logging.getLogger(__name__)

# Accepted child keys per level, first match wins
FIELD_KEYS = ("field_categories", "subcategories")
ITEM_KEYS = ("item_categories", "items")
DISTRICT_KEYS = ("districts",)
LOCAL_LEVEL_KEYS = ("localLevels", "local_levels")
WARD_KEYS = ("wards",)


def _as_list(raw: Dict[str, Any], keys: Tuple[str, ...]) -> List[Any]:
    """Return the first child array found under ``keys``; absent or null means empty."""
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, list):
            return value
        logger.warning(f"Ignoring non-list '{key}' in taxonomy node {raw.get('id')!r}")
        return []
    return []


def _unwrap(raw: Any, envelope_key: str) -> List[Any]:
    if isinstance(raw, dict):
        raw = raw.get(envelope_key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning(f"Expected a list of {envelope_key}, got {type(raw).__name__}")
        return []
    return raw


class CategoryTree:
    """Domain -> Field -> Item tree with per-level indexes and leaf sets."""

    def __init__(self, domains: List[CategoryNode]):
        self.domains = domains
        self._index: Dict[CategoryLevel, "OrderedDict[int, CategoryNode]"] = {
            level: OrderedDict() for level in CategoryLevel
        }
        self._parent: Dict[NodeRef, NodeRef] = {}
        self._items_under: Dict[NodeRef, FrozenSet[int]] = {}
        for domain in domains:
            self._register(domain, None)
        for domain in domains:
            self._collect_items(domain)

    def _register(self, node: CategoryNode, parent: Optional[CategoryNode]) -> None:
        level_index = self._index[node.level]
        if node.id in level_index:
            logger.warning(f"Duplicate {node.level.value} id {node.id} ('{node.name}'); keeping first occurrence")
        else:
            level_index[node.id] = node
            if parent is not None:
                self._parent[node.ref] = parent.ref
        for child in node.children:
            self._register(child, node)

    def _collect_items(self, node: CategoryNode) -> FrozenSet[int]:
        if node.level is CategoryLevel.ITEM:
            items = frozenset([node.id])
        else:
            collected = set()
            for child in node.children:
                collected |= self._collect_items(child)
            items = frozenset(collected)
        if self.is_indexed(node):
            self._items_under[node.ref] = items
        return items

    def node(self, ref: NodeRef) -> Optional[CategoryNode]:
        if not isinstance(ref.level, CategoryLevel):
            return None
        return self._index[ref.level].get(ref.id)

    def nodes(self, level: CategoryLevel) -> List[CategoryNode]:
        """Indexed nodes of one level in display order."""
        return list(self._index[level].values())

    def items_under(self, ref: NodeRef) -> FrozenSet[int]:
        """Leaf set of a node: every Item id in its subtree (empty if unknown)."""
        return self._items_under.get(ref, frozenset())

    def is_indexed(self, node: CategoryNode) -> bool:
        return self._index[node.level].get(node.id) is node

    def items_of(self, node: CategoryNode) -> FrozenSet[int]:
        """Leaf set of this exact node, including duplicates left out of the index."""
        if self.is_indexed(node):
            return self.items_under(node.ref)
        if node.level is CategoryLevel.ITEM:
            return frozenset([node.id])
        items = set()
        for child in node.children:
            items |= self.items_of(child)
        return frozenset(items)

    def parent(self, ref: NodeRef) -> Optional[NodeRef]:
        return self._parent.get(ref)

    def iter_refs(self) -> Iterator[NodeRef]:
        """All indexed nodes, level by level."""
        for level in CategoryLevel:
            for node_id in self._index[level]:
                yield NodeRef(level, node_id)


class LocationTree:
    """Province -> District -> LocalLevel -> Ward (-> local addresses)."""

    def __init__(self, provinces: List[LocationNode]):
        self.provinces = provinces
        self._index: Dict[LocationLevel, "OrderedDict[int, LocationNode]"] = {
            level: OrderedDict()
            for level in (LocationLevel.PROVINCE, LocationLevel.DISTRICT, LocationLevel.LOCAL_LEVEL)
        }
        self._wards: "OrderedDict[int, Ward]" = OrderedDict()
        self._leaves_under: Dict[NodeRef, FrozenSet[LocationRef]] = {}
        for province in provinces:
            self._register(province)

    def _register(self, node: LocationNode) -> FrozenSet[LocationRef]:
        leaves = set()
        for child in node.children:
            leaves |= self._register(child)
        for ward in node.wards:
            if ward.id in self._wards:
                logger.warning(f"Duplicate ward id {ward.id}; keeping first occurrence")
            else:
                self._wards[ward.id] = ward
                self._leaves_under[ward.ref] = frozenset(ward.composites())
            leaves.update(ward.composites())
        frozen = frozenset(leaves)
        level_index = self._index[node.level]
        if node.id in level_index:
            logger.warning(f"Duplicate {node.level.value} id {node.id} ('{node.name}'); keeping first occurrence")
        else:
            level_index[node.id] = node
            self._leaves_under[node.ref] = frozen
        return frozen

    def node(self, ref: NodeRef) -> Optional[LocationNode]:
        if ref.level in self._index:
            return self._index[ref.level].get(ref.id)
        return None

    def nodes(self, level: LocationLevel) -> List[LocationNode]:
        return list(self._index.get(level, {}).values())

    def ward(self, ward_id: int) -> Optional[Ward]:
        return self._wards.get(ward_id)

    def wards(self) -> List[Ward]:
        return list(self._wards.values())

    def leaves_under(self, ref: NodeRef) -> FrozenSet[LocationRef]:
        """Every ward ref plus every ward-address composite beneath ``ref``."""
        return self._leaves_under.get(ref, frozenset())

    def contains(self, ref: LocationRef) -> bool:
        ward = self._wards.get(ref.ward_id)
        if ward is None:
            return False
        return ref.address_index is None or 0 <= ref.address_index < len(ward.local_addresses)


def _build_category_node(raw: Any, level: CategoryLevel) -> Optional[CategoryNode]:
    if not isinstance(raw, dict):
        logger.warning(f"Skipping malformed {level.value} category entry: {raw!r}")
        return None
    node_id = to_int(raw.get("id"))
    if node_id is None:
        logger.warning(f"Skipping {level.value} category without a usable id: {raw.get('id')!r}")
        return None

    children: List[CategoryNode] = []
    if level is CategoryLevel.DOMAIN:
        for raw_field in _as_list(raw, FIELD_KEYS):
            child = _build_category_node(raw_field, CategoryLevel.FIELD)
            if child is not None:
                children.append(child)
    if level is not CategoryLevel.ITEM:
        for raw_item in _as_list(raw, ITEM_KEYS):
            child = _build_category_node(raw_item, CategoryLevel.ITEM)
            if child is not None:
                children.append(child)

    name = clean_text(raw.get("name"))
    if not name and not children:
        logger.debug(f"Skipping unnamed empty {level.value} category {node_id}")
        return None
    return CategoryNode(id=node_id, name=name, level=level, children=children)


def build_category_tree(raw_domains: Any) -> CategoryTree:
    """
    Build the category tree from the collaborator payload.

    Accepts a list of domains or a ``{"categories": [...]}`` envelope.
    Domains may own Field children, direct Item children, or both.
    """
    domains = []
    for raw in _unwrap(raw_domains, "categories"):
        node = _build_category_node(raw, CategoryLevel.DOMAIN)
        if node is not None:
            domains.append(node)
    tree = CategoryTree(domains)
    logger.debug(
        f"Category tree built: {len(tree.nodes(CategoryLevel.DOMAIN))} domains, "
        f"{len(tree.nodes(CategoryLevel.FIELD))} fields, {len(tree.nodes(CategoryLevel.ITEM))} items"
    )
    return tree


def _split_addresses(value: Any) -> List[str]:
    # Addresses are addressed by position, so blanks are kept in place
    if value is None:
        return []
    if isinstance(value, str):
        return [clean_text(a) for a in value.split(", ")] if value.strip() else []
    if isinstance(value, list):
        return [clean_text(a) for a in value]
    logger.warning(f"Ignoring malformed local_addresses: {value!r}")
    return []


def _build_ward(raw: Any) -> Optional[Ward]:
    if not isinstance(raw, dict):
        logger.warning(f"Skipping malformed ward entry: {raw!r}")
        return None
    ward_id = to_int(raw.get("id"))
    if ward_id is None:
        logger.warning(f"Skipping ward without a usable id: {raw.get('id')!r}")
        return None
    return Ward(
        id=ward_id,
        ward_number=to_int(raw.get("ward_number")),
        local_addresses=_split_addresses(raw.get("local_addresses")),
    )


_CHILD_LEVELS = {
    LocationLevel.PROVINCE: (DISTRICT_KEYS, LocationLevel.DISTRICT),
    LocationLevel.DISTRICT: (LOCAL_LEVEL_KEYS, LocationLevel.LOCAL_LEVEL),
}


def _build_location_node(raw: Any, level: LocationLevel) -> Optional[LocationNode]:
    if not isinstance(raw, dict):
        logger.warning(f"Skipping malformed {level.value} entry: {raw!r}")
        return None
    node_id = to_int(raw.get("id"))
    if node_id is None:
        logger.warning(f"Skipping {level.value} without a usable id: {raw.get('id')!r}")
        return None

    children: List[LocationNode] = []
    wards: List[Ward] = []
    if level in _CHILD_LEVELS:
        keys, child_level = _CHILD_LEVELS[level]
        for raw_child in _as_list(raw, keys):
            child = _build_location_node(raw_child, child_level)
            if child is not None:
                children.append(child)
    else:
        for raw_ward in _as_list(raw, WARD_KEYS):
            ward = _build_ward(raw_ward)
            if ward is not None:
                wards.append(ward)

    name = clean_text(raw.get("name"))
    if not name and not children and not wards:
        logger.debug(f"Skipping unnamed empty {level.value} {node_id}")
        return None
    return LocationNode(
        id=node_id,
        name=name,
        level=level,
        children=children,
        wards=wards,
        type=clean_text(raw.get("type")),
    )


def build_location_tree(raw_provinces: Any) -> LocationTree:
    """Build the location tree from a province list or ``{"provinces": [...]}``."""
    provinces = []
    for raw in _unwrap(raw_provinces, "provinces"):
        node = _build_location_node(raw, LocationLevel.PROVINCE)
        if node is not None:
            provinces.append(node)
    tree = LocationTree(provinces)
    logger.debug(f"Location tree built: {len(provinces)} provinces, {len(tree.wards())} wards")
    return tree


def _local_level_type(raw_type: Any) -> str:
    return "rural_municipality" if clean_text(raw_type) == "Rural Municipality" else "municipality"


def location_payload_from_rows(rows: Iterable[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Group flat ward rows into the nested ``{"provinces": [...]}`` payload.

    Each row is one ward: ``id, province, district, local_level,
    local_level_type, ward_number, local_address`` (addresses joined by ", ").
    Province, district and local level ids are assigned sequentially in
    sorted order, so they are unique within their level.
    """
    def sort_key(row):
        return (
            clean_text(row.get("province")),
            clean_text(row.get("district")),
            clean_text(row.get("local_level")),
            to_int(row.get("ward_number")) or 0,
        )

    provinces: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    districts: Dict[Tuple[str, str], Dict[str, Any]] = {}
    local_levels: Dict[Tuple[str, str, str], Dict[str, Any]] = {}

    for row in sorted(rows, key=sort_key):
        province_name = clean_text(row.get("province"))
        district_name = clean_text(row.get("district"))
        local_level_name = clean_text(row.get("local_level"))

        if province_name not in provinces:
            provinces[province_name] = {"id": len(provinces) + 1, "name": province_name, "districts": []}
        province = provinces[province_name]

        district_key = (province_name, district_name)
        if district_key not in districts:
            district = {"id": len(districts) + 1, "name": district_name, "localLevels": []}
            districts[district_key] = district
            province["districts"].append(district)
        district = districts[district_key]

        local_level_key = (province_name, district_name, local_level_name)
        if local_level_key not in local_levels:
            local_level = {
                "id": len(local_levels) + 1,
                "name": local_level_name,
                "type": _local_level_type(row.get("local_level_type")),
                "wards": [],
            }
            local_levels[local_level_key] = local_level
            district["localLevels"].append(local_level)

        local_levels[local_level_key]["wards"].append({
            "id": row.get("id"),
            "ward_number": row.get("ward_number"),
            "local_addresses": _split_addresses(row.get("local_address")),
        })

    return {"provinces": list(provinces.values())}
