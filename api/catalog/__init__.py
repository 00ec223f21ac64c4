"""
Listing query builder and paginator.

Turns untrusted, string-typed query parameters into a storage filter, a
sort specification and page bounds, then runs the page, the total count and
the facet aggregation against a collection.

The same combinators serve every listing endpoint; what differs between
resources is the `FieldCatalog` (see `catalog/fields.py`).
"""
