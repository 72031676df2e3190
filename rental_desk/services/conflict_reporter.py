"""Display summaries for scheduling conflicts.

Pure functions: they read the conflicting applications and return plain
dicts, never touching the session or the objects they are given.
"""
from rental_desk.services.occupancy import normalize_booking, span


def resource_label(booking):
    room = booking.room.label if booking.room else f"Room {booking.room_id}"
    if booking.workspaces:
        names = ', '.join(w.name for w in booking.workspaces)
        return f"{room}: {names}"
    return room


def requester_label(booking):
    if booking.client:
        return booking.client.full_name
    return f"Client {booking.client_id}"


def period_label(booking):
    first, last = span(normalize_booking(booking, max_days=None))
    if first == last:
        return first.isoformat()
    return f"{first.isoformat()} - {last.isoformat()}"


def time_label(booking):
    if booking.start_time and booking.end_time:
        return f"{booking.start_time.strftime('%H:%M')}-{booking.end_time.strftime('%H:%M')}"
    return 'whole day'


def describe_booking(booking):
    """One-line description, e.g. for occupancy grids."""
    return f"Rental {booking.application_number}: {requester_label(booking)}"


def summarize_conflict(conflict):
    booking = conflict.booking
    return {
        'application_id': booking.id,
        'application_number': booking.application_number,
        'status': booking.status,
        'room_id': booking.room_id,
        'workspace_id': conflict.workspace_id,
        'resource': resource_label(booking),
        'requester': requester_label(booking),
        'period': period_label(booking),
        'time': time_label(booking),
        'dates': [d.isoformat() for d in conflict.days],
        'description': f"{resource_label(booking)} is taken by rental {booking.application_number} "
                       f"({requester_label(booking)}), {period_label(booking)}, {time_label(booking)}",
    }


def summarize_conflicts(conflicts):
    ordered = sorted(conflicts, key=lambda c: (c.days[0], c.booking.id, c.workspace_id or 0))
    return [summarize_conflict(c) for c in ordered]


def conflict_message(conflicts):
    count = len({c.booking.id for c in conflicts})
    if count == 1:
        return "The requested period conflicts with 1 existing rental."
    return f"The requested period conflicts with {count} existing rentals."
