"""
Per-resource field catalogs.

A catalog is a compile-time constant describing which query parameters a
listing accepts and which storage fields they map to. Courses and blogs
share every combinator; only these tables differ.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Union

# Upper bound used by open-ended presets.
MAX_SAFE_INTEGER = 2**53 - 1

DEFAULT_MAX_LIMIT = 100

SortAlias = Union[str, tuple[tuple[str, int], ...]]


@dataclass(frozen=True)
class RangeField:
    storage: str
    min_param: str | None = None
    max_param: str | None = None
    kind: str = "float"  # float | int | date
    min_aliases: tuple[str, ...] = ()


@dataclass(frozen=True)
class Preset:
    storage: str
    buckets: Mapping[str, tuple[float, float]]


@dataclass(frozen=True)
class FacetSpec:
    ranges: Mapping[str, str] = field(default_factory=dict)
    groups: Mapping[str, str] = field(default_factory=dict)
    sums: Mapping[str, str] = field(default_factory=dict)
    averages: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldCatalog:
    name: str
    visibility_param: str
    visibility_field: str
    search_fields: tuple[str, ...]
    search_array_fields: tuple[str, ...] = ()
    search_param: str = "search"
    enum_params: Mapping[str, str] = field(default_factory=dict)
    sentinels: Mapping[str, str] = field(default_factory=dict)
    pattern_params: Mapping[str, str] = field(default_factory=dict)
    range_params: Mapping[str, RangeField] = field(default_factory=dict)
    presets: Mapping[str, Preset] = field(default_factory=dict)
    flag_params: Mapping[str, str] = field(default_factory=dict)
    discount_param: str | None = None
    discount_field: str | None = None
    tag_param: str | None = None
    tag_field: str = "tags"
    sort_params: tuple[str, ...] = ("sortBy",)
    order_param: str = "sortOrder"
    sort_aliases: Mapping[str, SortAlias] = field(default_factory=dict)
    default_sort: str = "createdAt"
    created_field: str = "createdAt"
    default_limit: int = 10
    max_limit: int = DEFAULT_MAX_LIMIT
    facets: FacetSpec | None = None


COURSE_CATEGORIES = (
    "frontend",
    "backend",
    "fullstack",
    "webdesign",
    "mobile",
    "devops",
    "cybersecurity",
    "testing",
)
COURSE_LEVELS = ("beginner", "intermediate", "advanced")
COURSE_BADGES = ("new", "trending", "popular", "featured", "recommended")
BLOG_BADGES = COURSE_BADGES + ("advanced", "beginner", "exclusive", "updated", "limited")

ALL_COURSES = "All Courses"


COURSES = FieldCatalog(
    name="courses",
    visibility_param="isActive",
    visibility_field="isActive",
    search_fields=("title", "description", "instructor", "category"),
    search_array_fields=("tags",),
    enum_params={"category": "category", "level": "level", "badge": "badge"},
    sentinels={"category": ALL_COURSES},
    pattern_params={"instructor": "instructor"},
    range_params={
        "price": RangeField("originalPrice", "minPrice", "maxPrice"),
        "discountPercentage": RangeField(
            "discountPercentage",
            "minDiscountPercentage",
            "maxDiscountPercentage",
            min_aliases=("minDiscount",),
        ),
        "rating": RangeField("rating", "minRating", "maxRating"),
        "duration": RangeField("totalHours", "minDuration", "maxDuration"),
        "students": RangeField("students", "minStudents", "maxStudents", kind="int"),
        "createdAt": RangeField("createdAt", "createdAfter", "createdBefore", kind="date"),
        "updatedAt": RangeField("updatedAt", "updatedAfter", "updatedBefore", kind="date"),
    },
    presets={
        "priceRange": Preset(
            "originalPrice",
            {
                "free": (0, 0),
                "under-1000": (0, 1000),
                "1000-5000": (1000, 5000),
                "5000-10000": (5000, 10000),
                "above-10000": (10000, MAX_SAFE_INTEGER),
            },
        ),
        "durationRange": Preset(
            "totalHours",
            {
                "short": (0, 10),
                "medium": (10, 30),
                "long": (30, 100),
                "extended": (100, MAX_SAFE_INTEGER),
            },
        ),
    },
    flag_params={"isFeatured": "isFeatured"},
    discount_param="hasDiscount",
    discount_field="discountedPrice",
    tag_param="tags",
    sort_aliases={
        "price": "originalPrice",
        "discountedPrice": "discountedPrice",
        "rating": "rating",
        "students": "students",
        "duration": "totalHours",
        "discount": "discountPercentage",
        "popularity": (("students", -1), ("rating", -1)),
        "trending": (("createdAt", -1), ("students", -1)),
    },
    default_limit=12,
    facets=FacetSpec(
        ranges={
            "priceRange": "originalPrice",
            "ratingRange": "rating",
            "durationRange": "totalHours",
            "studentsRange": "students",
        },
        groups={"categories": "category", "levels": "level", "badges": "badge"},
        sums={"totalStudents": "students"},
        averages={"averageRating": "rating", "averagePrice": "originalPrice"},
    ),
)


BLOGS = FieldCatalog(
    name="blogs",
    visibility_param="isPublished",
    visibility_field="isPublished",
    search_fields=("title", "description", "author", "category"),
    search_array_fields=("tags",),
    enum_params={"category": "category", "badge": "badge"},
    pattern_params={"author": "author"},
    range_params={
        "views": RangeField("views", "minViews", "maxViews", kind="int"),
        "createdAt": RangeField("createdAt", "createdAfter", "createdBefore", kind="date"),
        "updatedAt": RangeField("updatedAt", "updatedAfter", "updatedBefore", kind="date"),
    },
    tag_param="tags",
    sort_params=("sortBy", "sort"),
    sort_aliases={
        "newest": (("createdAt", -1),),
        "oldest": (("createdAt", 1),),
        "popular": (("views", -1),),
        "views": "views",
        "title": "title",
    },
    default_limit=10,
    facets=FacetSpec(
        ranges={"viewsRange": "views"},
        groups={"categories": "category", "badges": "badge"},
        sums={"totalViews": "views"},
    ),
)
