"""
Helpers shared across apps.
"""

from django.db.models.functions import Length
from django.utils import timezone


def next_sequence_number(model, organization, field, prefix, width=5):
    """
    Return the next zero-padded document number for an organization.

    Numbers look like ``<prefix><counter>`` (``INV-00042``, ``PO-2026-00007``).
    The counter restarts for every distinct prefix, so year-stamped prefixes
    restart each year. Counters past ``width`` digits get longer, so the
    latest number is the longest one, then the highest.
    """
    last_number = (
        model.objects.filter(organization=organization, **{f"{field}__startswith": prefix})
        .order_by(Length(field).desc(), f"-{field}")
        .values_list(field, flat=True)
        .first()
    )
    counter = 1
    if last_number:
        try:
            counter = int(last_number[len(prefix):]) + 1
        except ValueError:
            counter = model.objects.filter(organization=organization).count() + 1
    return f"{prefix}{counter:0{width}d}"


def yearly_prefix(code, when=None):
    """``PO`` -> ``PO-2026-``."""
    when = when or timezone.localdate()
    return f"{code}-{when.year}-"
