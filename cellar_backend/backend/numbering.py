# backend/numbering.py

"""
Human-facing document numbers: <PREFIX>-<YEAR>-<SEQ>.

The sequence restarts every year. Numbers are generated inside the caller's
transaction; the unique constraint on the target column is the final guard.
"""

from django.utils import timezone


def next_sequential_number(model, field: str, prefix: str, width: int = 4) -> str:
    stem = f"{prefix}-{timezone.now().year}-"
    last = (
        model.objects.filter(**{f"{field}__startswith": stem})
        .order_by(f"-{field}")
        .values_list(field, flat=True)
        .first()
    )

    seq = 1
    if last:
        try:
            seq = int(last[len(stem):]) + 1
        except ValueError:
            seq = model.objects.filter(**{f"{field}__startswith": stem}).count() + 1

    return f"{stem}{seq:0{width}d}"
