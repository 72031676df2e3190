"""Error kinds raised by the rental services.

All of them subclass ``ValueError`` so callers that only care about
"bad request vs. server error" can keep catching ``ValueError``. Routes
map each kind to its own status code through :func:`error_response`.
"""
from flask import jsonify


class RentalError(ValueError):
    status_code = 400

    def __init__(self, message, payload=None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_dict(self):
        body = {'error': self.message}
        body.update(self.payload)
        return body


class ValidationError(RentalError):
    """Malformed input: bad dates or times, inverted ranges, missing fields."""
    status_code = 400


class NotFoundError(RentalError):
    status_code = 404


class ConflictError(RentalError):
    """The requested period overlaps existing bookings."""
    status_code = 409

    def __init__(self, message, conflicts=None):
        super().__init__(message, {'conflicts': conflicts or []})
        self.conflicts = conflicts or []


class StateError(RentalError):
    """Operation not allowed in the application's current state."""
    status_code = 400


def error_response(exc):
    if isinstance(exc, RentalError):
        return jsonify(exc.to_dict()), exc.status_code
    return jsonify({'error': str(exc)}), 400
