"""
Data models for the category/location taxonomies and the listing snapshot.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .utils import strip_text, to_float, to_int


class CategoryLevel(str, Enum):
    DOMAIN = "domain"
    FIELD = "field"
    ITEM = "item"


class LocationLevel(str, Enum):
    PROVINCE = "province"
    DISTRICT = "district"
    LOCAL_LEVEL = "local_level"
    WARD = "ward"
    LOCAL_ADDRESS = "local_address"


Level = Union[CategoryLevel, LocationLevel]


class CheckState(str, Enum):
    """Displayed state of a tri-state checkbox."""
    CHECKED = "checked"
    PARTIAL = "partial"
    UNCHECKED = "unchecked"


@dataclass(frozen=True)
class NodeRef:
    """Tagged reference to a taxonomy node: ids are only unique within a level."""
    level: Level
    id: int

    def __str__(self) -> str:
        return f"{self.level.value}:{self.id}"

    @classmethod
    def parse(cls, text: str) -> Optional["NodeRef"]:
        """Parse ``"<level>:<id>"``; returns None when malformed."""
        if not text or ":" not in text:
            return None
        level_text, _, id_text = text.partition(":")
        level_text = level_text.strip().lower()
        node_id = to_int(id_text)
        if node_id is None:
            return None
        for enum_cls in (CategoryLevel, LocationLevel):
            try:
                return cls(enum_cls(level_text), node_id)
            except ValueError:
                continue
        return None


@dataclass(frozen=True)
class LocationRef:
    """
    Composite location reference.

    ``address_index is None`` selects the ward as a whole; otherwise it points
    at one local address of that ward. Encoded as ``"7"`` or ``"7-2"``.
    """
    ward_id: int
    address_index: Optional[int] = None

    def __str__(self) -> str:
        if self.address_index is None:
            return str(self.ward_id)
        return f"{self.ward_id}-{self.address_index}"

    @property
    def is_ward(self) -> bool:
        return self.address_index is None

    @classmethod
    def parse(cls, value: Any) -> Optional["LocationRef"]:
        """Decode an int ward id or a ``"ward-index"`` string; None if malformed."""
        if isinstance(value, LocationRef):
            return value
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, int):
            return cls(value)
        text = str(value).strip()
        if "-" in text[1:]:
            ward_text, _, index_text = text.rpartition("-")
            ward_id, index = to_int(ward_text), to_int(index_text)
            if ward_id is None or index is None or index < 0:
                return None
            return cls(ward_id, index)
        ward_id = to_int(text)
        if ward_id is None:
            return None
        return cls(ward_id)


@dataclass
class CategoryNode:
    id: int
    name: str
    level: CategoryLevel
    children: List["CategoryNode"] = field(default_factory=list)

    @property
    def ref(self) -> NodeRef:
        return NodeRef(self.level, self.id)

    @property
    def fields(self) -> List["CategoryNode"]:
        return [c for c in self.children if c.level is CategoryLevel.FIELD]

    @property
    def direct_items(self) -> List["CategoryNode"]:
        return [c for c in self.children if c.level is CategoryLevel.ITEM]

    @property
    def looks_like_domain(self) -> bool:
        """Domain structure: has Field children or direct Items."""
        return self.level is CategoryLevel.DOMAIN and bool(self.children)


@dataclass
class Ward:
    id: int
    ward_number: Optional[int]
    local_addresses: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return f"Ward {self.ward_number}" if self.ward_number is not None else f"Ward #{self.id}"

    @property
    def ref(self) -> NodeRef:
        return NodeRef(LocationLevel.WARD, self.id)

    def composites(self) -> List[LocationRef]:
        """The ward itself followed by one composite per local address."""
        refs = [LocationRef(self.id)]
        refs.extend(LocationRef(self.id, i) for i in range(len(self.local_addresses)))
        return refs


@dataclass
class LocationNode:
    """Province, district or local level."""
    id: int
    name: str
    level: LocationLevel
    children: List["LocationNode"] = field(default_factory=list)
    wards: List[Ward] = field(default_factory=list)
    type: str = ""

    @property
    def ref(self) -> NodeRef:
        return NodeRef(self.level, self.id)


@dataclass
class Listing:
    """One ad from the listing snapshot."""
    id: Optional[int]
    title: str = ""
    description: str = ""
    price: Optional[float] = None
    category_id: Optional[int] = None
    location_id: Optional[int] = None
    selected_local_address_index: Optional[int] = None
    # Index was supplied but is not an integer; such a listing matches no address
    bad_address_index: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Listing":
        """
        Build a listing, coercing numeric fields where syntactically possible.

        Title and description keep their inner whitespace so text search
        sees exactly what was posted.
        """
        known = {
            "id", "title", "description", "price", "category_id",
            "location_id", "selected_local_address_index",
        }
        raw_index = raw.get("selected_local_address_index")
        index = to_int(raw_index)
        return cls(
            id=to_int(raw.get("id")),
            title=strip_text(raw.get("title")),
            description=strip_text(raw.get("description")),
            price=to_float(raw.get("price")),
            category_id=to_int(raw.get("category_id")),
            location_id=to_int(raw.get("location_id")),
            selected_local_address_index=index,
            bad_address_index=index is None and strip_text(raw_index) != "",
            extra={k: v for k, v in raw.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        row = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "category_id": self.category_id,
            "location_id": self.location_id,
            "selected_local_address_index": self.selected_local_address_index,
        }
        row.update(self.extra)
        return row


@dataclass
class PageResult:
    items: List[Listing]
    total_count: int
    page_count: int
    page: int
    page_size: int
