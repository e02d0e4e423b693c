"""
Pydantic models for API request/response serialization.
"""
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from facets import (
    CategorySelection, CategoryTree, Listing, LocationRef, LocationSelection,
    NodeRef, selected_domains, selected_fields,
)

from .config import config


class ListingOut(BaseModel):
    """Output model for listing data."""
    id: Optional[int] = None
    title: str = ""
    description: str = ""
    price: Optional[float] = None
    category_id: Optional[int] = None
    location_id: Optional[int] = None
    selected_local_address_index: Optional[int] = None

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingOut":
        return cls(
            id=listing.id,
            title=listing.title,
            description=listing.description,
            price=listing.price,
            category_id=listing.category_id,
            location_id=listing.location_id,
            selected_local_address_index=listing.selected_local_address_index,
        )


class SelectionIn(BaseModel):
    """Current selection as held by the client."""
    category_items: List[int] = []
    category_pinned: List[str] = []  # tagged refs, e.g. "field:12"
    locations: List[Union[int, str]] = []  # ward ids or "ward-index" composites

    def to_core(self) -> Tuple[CategorySelection, LocationSelection]:
        pinned = [NodeRef.parse(text) for text in self.category_pinned]
        refs = [LocationRef.parse(value) for value in self.locations]
        return (
            CategorySelection(
                items=frozenset(self.category_items),
                pinned=frozenset(p for p in pinned if p is not None),
            ),
            LocationSelection(refs=frozenset(r for r in refs if r is not None)),
        )


class SelectionOut(SelectionIn):
    """Selection after a transition, with the derived branch flags."""
    selected_domains: List[int] = []
    selected_fields: List[int] = []

    @classmethod
    def from_core(cls, category: CategorySelection, location: LocationSelection, tree: CategoryTree) -> "SelectionOut":
        return cls(
            category_items=sorted(category.items),
            category_pinned=sorted(str(p) for p in category.pinned),
            locations=location.encoded(),
            selected_domains=sorted(selected_domains(category, tree)),
            selected_fields=sorted(selected_fields(category, tree)),
        )


class CategoryToggleRequest(BaseModel):
    selection: SelectionIn = Field(default_factory=SelectionIn)
    id: Union[int, str]
    name: Optional[str] = None
    level: Optional[str] = None


class LocationToggleRequest(BaseModel):
    selection: SelectionIn = Field(default_factory=SelectionIn)
    ref: Union[int, str]  # "province:3", 7 or "7-2"


class ResolveRequest(BaseModel):
    id: Union[int, str]
    name: Optional[str] = None
    level: Optional[str] = None


class NodeRefOut(BaseModel):
    level: str
    id: int
    name: str = ""


class SearchRequest(BaseModel):
    """Pipeline inputs; page numbers are 1-based."""
    query: str = ""
    selection: SelectionIn = Field(default_factory=SelectionIn)
    sort: str = "relevance"
    page: int = 1
    page_size: int = Field(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE)
    min_price: Optional[float] = None
    max_price: Optional[float] = None


class PageOut(BaseModel):
    """Response model for paginated listings."""
    items: List[ListingOut]
    total_count: int
    page_count: int
    page: int
    page_size: int


class CategoryNodeOut(BaseModel):
    level: str
    id: int
    name: str
    count: int = 0
    state: str = "unchecked"
    children: List["CategoryNodeOut"] = []


class AddressOut(BaseModel):
    index: int
    text: str
    ref: str
    count: int = 0
    state: str = "unchecked"


class WardOut(BaseModel):
    id: int
    ward_number: Optional[int] = None
    name: str
    count: int = 0
    state: str = "unchecked"
    addresses: List[AddressOut] = []


class LocationNodeOut(BaseModel):
    level: str
    id: int
    name: str
    type: str = ""
    count: int = 0
    state: str = "unchecked"
    children: List["LocationNodeOut"] = []
    wards: List[WardOut] = []


class FacetQuery(SearchRequest):
    """Counts and check states for the tree views."""


CategoryNodeOut.model_rebuild()
LocationNodeOut.model_rebuild()
