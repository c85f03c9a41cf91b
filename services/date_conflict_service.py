"""
Date-Conflict Resolver
Finds instances of the same hotel whose booking window overlaps a candidate range
"""

from models import HotelInstance


def ranges_overlap(start_a, end_a, start_b, end_b):
    """
    Inclusive overlap test.

    Two windows that only touch (one ends the day the other starts) still
    overlap: the changeover day would be booked twice.
    """
    return start_a <= end_b and start_b <= end_a


def find_overlaps(hotel_id, candidate_start, candidate_end, exclude_instance_code=None):
    """
    Find instances of hotel_id overlapping [candidate_start, candidate_end]

    Args:
        hotel_id: Hotel grouping key
        candidate_start: date
        candidate_end: date
        exclude_instance_code: instance being edited, so it does not
            conflict with itself (None for brand-new instances)

    Returns:
        List of overlapping HotelInstance objects
    """
    query = HotelInstance.query.filter(
        HotelInstance.hotel_id == hotel_id,
        HotelInstance.start_date <= candidate_end,
        HotelInstance.end_date >= candidate_start,
    )
    if exclude_instance_code is not None:
        query = query.filter(HotelInstance.instance_code != exclude_instance_code)

    return query.order_by(HotelInstance.start_date.asc()).all()
