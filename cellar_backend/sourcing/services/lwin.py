# sourcing/services/lwin.py

"""
LWIN LOOKUP

match_lwin(query):
- digits only → LWIN prefix match
- otherwise   → every whitespace token must appear in display_name or
  producer_name (case-insensitive)

Ordering: exact LWIN, then display_name starting with the query, then the rest
alphabetically.
"""

from __future__ import annotations

from django.db.models import Case, IntegerField, Q, Value, When

from sourcing.models import LwinWine

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def match_lwin(query: str, *, limit: int = DEFAULT_LIMIT):
    query = (query or "").strip()
    if not query:
        return LwinWine.objects.none()

    limit = max(1, min(int(limit or DEFAULT_LIMIT), MAX_LIMIT))

    if query.isdigit():
        condition = Q(lwin__startswith=query)
    else:
        condition = Q()
        for token in query.split():
            condition &= Q(display_name__icontains=token) | Q(producer_name__icontains=token)

    relevance = Case(
        When(lwin=query, then=Value(0)),
        When(display_name__istartswith=query, then=Value(1)),
        default=Value(2),
        output_field=IntegerField(),
    )

    return (
        LwinWine.objects.filter(condition)
        .annotate(relevance=relevance)
        .order_by("relevance", "display_name")[:limit]
    )
