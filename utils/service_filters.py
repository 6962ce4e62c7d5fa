"""
Filtering and sorting for the service catalogue pages.
"""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from models.service import Service

SORT_FEATURED = "featured"
SORT_PRICE = "price"
SORT_DURATION = "duration"
SORT_NAME = "name"

_MALE_TERMS = ("men", "male")
_FEMALE_TERMS = ("women", "female", "ladies")


class Range(BaseModel):
    """Inclusive numeric range."""

    min: float = 0
    max: float = float("inf")


class ServiceFilterOptions(BaseModel):
    """Filters selected on a category page."""

    sub_category: Optional[str] = None
    gender: Optional[str] = Field(None, description="male, female or unisex")
    availability: Optional[str] = Field(None, description="home, salon or both")
    price_range: Optional[Range] = None
    duration: Optional[Range] = None
    featured: bool = False
    search: Optional[str] = None
    sort_by: str = SORT_FEATURED
    sort_order: str = "desc"


def _matches_gender(service: Service, gender: str) -> bool:
    # Female terms contain the male ones ("women" includes "men"), so the
    # male filter also matches them, as in the catalogue UI
    text = f"{service.name} {' '.join(service.tags)}".lower()
    if gender == "male":
        return any(term in text for term in _MALE_TERMS)
    if gender == "female":
        return any(term in text for term in _FEMALE_TERMS)
    return True


def _matches_search(service: Service, term: str) -> bool:
    return (
        term in service.name.lower()
        or term in service.description.lower()
        or term in service.sub_category.lower()
        or any(term in tag.lower() for tag in service.tags)
    )


def filter_services(
    services: Sequence[Service], filters: ServiceFilterOptions
) -> List[Service]:
    """Apply every active filter, then sort."""
    filtered = list(services)

    if filters.sub_category:
        wanted = filters.sub_category.lower()
        filtered = [s for s in filtered if s.sub_category.lower() == wanted]

    if filters.gender:
        filtered = [s for s in filtered if _matches_gender(s, filters.gender)]

    if filters.availability == "home":
        filtered = [s for s in filtered if s.available_at_home]
    elif filters.availability == "salon":
        filtered = [s for s in filtered if s.available_at_salon]

    if filters.price_range:
        low, high = filters.price_range.min, filters.price_range.max
        filtered = [s for s in filtered if low <= s.effective_price <= high]

    if filters.duration:
        low, high = filters.duration.min, filters.duration.max
        filtered = [s for s in filtered if low <= s.duration <= high]

    if filters.featured:
        filtered = [s for s in filtered if s.is_featured]

    if filters.search and filters.search.strip():
        term = filters.search.strip().lower()
        filtered = [s for s in filtered if _matches_search(s, term)]

    return sort_services(filtered, filters.sort_by, filters.sort_order)


def sort_services(
    services: Sequence[Service], sort_by: str = SORT_FEATURED, sort_order: str = "desc"
) -> List[Service]:
    """
    Sort services. Featured sorting always puts featured first and keeps
    the input order otherwise; unknown keys leave the order unchanged.
    """
    reverse = sort_order != "asc"

    if sort_by == SORT_FEATURED:
        return sorted(services, key=lambda s: not s.is_featured)
    if sort_by == SORT_PRICE:
        return sorted(services, key=lambda s: s.effective_price, reverse=reverse)
    if sort_by == SORT_DURATION:
        return sorted(services, key=lambda s: s.duration, reverse=reverse)
    if sort_by == SORT_NAME:
        return sorted(services, key=lambda s: s.name.lower(), reverse=reverse)
    return list(services)


def get_sub_categories(services: Sequence[Service]) -> List[str]:
    """Unique sub-categories, sorted."""
    return sorted({s.sub_category for s in services if s.sub_category})


def get_filter_stats(
    services: Sequence[Service], filters: ServiceFilterOptions
) -> Dict[str, Any]:
    """Counts shown above the service grid."""
    defaults = ServiceFilterOptions()
    active = 0
    for name in ServiceFilterOptions.model_fields:
        if name in ("sort_by", "sort_order"):
            if getattr(filters, name) != getattr(defaults, name):
                active += 1
            continue
        value = getattr(filters, name)
        if value not in (None, "", False):
            active += 1

    return {
        "total_services": len(services),
        "filtered_count": len(filter_services(services, filters)),
        "active_filters": active,
        "has_active_filters": active > 0,
    }
