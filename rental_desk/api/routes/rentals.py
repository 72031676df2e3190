from flask import Blueprint, request, jsonify, current_app
from rental_desk.errors import NotFoundError, ValidationError
from rental_desk.extensions import db
from rental_desk.models import Room
from rental_desk.services.availability_service import AvailabilityQuery, AvailabilityService
from rental_desk.services.invoice_service import InvoiceService
from rental_desk.services.pricing_service import PricingService
from rental_desk.services.rental_service import RentalService
from rental_desk.utils.decorators import token_required, handles_errors
from rental_desk.utils.parsing import parse_date, parse_date_list

rentals_bp = Blueprint('rentals', __name__)


def _payload():
    data = request.get_json(silent=True)
    if not data:
        raise ValidationError("No input data provided.")
    return data


def _room_or_404(room_id):
    try:
        room = db.session.get(Room, int(room_id))
    except (TypeError, ValueError):
        raise ValidationError("room_id is required.")
    if not room:
        raise NotFoundError("Room not found.")
    return room


def _application_dict(application):
    data = application.to_dict()
    invoice = InvoiceService.current_invoice(application)
    data['invoice'] = invoice.to_dict() if invoice else None
    return data


# --- AVAILABILITY & PRICING ---

@rentals_bp.route('/check-availability', methods=['POST'])
@token_required
@handles_errors
def check_availability(current_user):
    query = AvailabilityQuery.from_dict(_payload())
    result = AvailabilityService.is_available(query, max_days=current_app.config['MAX_RENTAL_DAYS'])
    return jsonify(result.to_dict()), 200 if result.resource_found else 404

@rentals_bp.route('/calculate-price', methods=['POST'])
@token_required
@handles_errors
def calculate_price(current_user):
    data = _payload()
    query = AvailabilityQuery.from_dict(data)
    price = PricingService.calculate(
        data.get('rental_type'), query,
        adjusted_price=data.get('adjusted_price') or None,
        max_days=current_app.config['MAX_RENTAL_DAYS']
    )
    return jsonify(price.to_dict()), 200

@rentals_bp.route('/hourly-occupancy', methods=['POST'])
@token_required
@handles_errors
def hourly_occupancy(current_user):
    data = _payload()
    room = _room_or_404(data.get('room_id'))
    dates = parse_date_list(data.get('dates'), 'dates')
    occupied = AvailabilityService.hourly_occupancy(
        room.id, dates,
        opening_hour=current_app.config['OPENING_HOUR'],
        closing_hour=current_app.config['CLOSING_HOUR']
    )
    return jsonify(occupied), 200

@rentals_bp.route('/daily-occupancy', methods=['POST'])
@token_required
@handles_errors
def daily_occupancy(current_user):
    data = _payload()
    room = _room_or_404(data.get('room_id'))
    days = AvailabilityService.daily_occupancy(
        room.id,
        parse_date(data.get('start_date'), 'start_date'),
        parse_date(data.get('end_date'), 'end_date')
    )
    return jsonify(days), 200


# --- RENTAL APPLICATIONS ---

@rentals_bp.route('/', methods=['POST'])
@token_required
@handles_errors
def create_rental(current_user):
    application = RentalService.create(_payload(), manager=current_user)
    return jsonify(_application_dict(application)), 201

@rentals_bp.route('/', methods=['GET'])
@token_required
@handles_errors
def list_rentals(current_user):
    applications = RentalService.list(request.args.to_dict())
    return jsonify([a.to_dict() for a in applications]), 200

@rentals_bp.route('/<int:application_id>', methods=['GET'])
@token_required
@handles_errors
def get_rental(current_user, application_id):
    return jsonify(_application_dict(RentalService.get(application_id))), 200

@rentals_bp.route('/<int:application_id>/edit-status', methods=['GET'])
@token_required
@handles_errors
def edit_status(current_user, application_id):
    return jsonify(RentalService.edit_status(application_id)), 200

@rentals_bp.route('/<int:application_id>', methods=['PATCH'])
@token_required
@handles_errors
def update_rental(current_user, application_id):
    application = RentalService.update(application_id, _payload())
    return jsonify(_application_dict(application)), 200

@rentals_bp.route('/<int:application_id>/extend', methods=['POST'])
@token_required
@handles_errors
def extend_rental(current_user, application_id):
    extension = RentalService.extend(application_id, _payload(), manager=current_user)
    return jsonify(_application_dict(extension)), 201

@rentals_bp.route('/<int:application_id>/cancel', methods=['POST'])
@token_required
@handles_errors
def cancel_rental(current_user, application_id):
    data = request.get_json(silent=True) or {}
    application = RentalService.cancel(application_id, data.get('reason'))
    return jsonify({'message': 'Rental cancelled', 'rental': application.to_dict()}), 200

@rentals_bp.route('/<int:application_id>/complete', methods=['POST'])
@token_required
@handles_errors
def complete_rental(current_user, application_id):
    application = RentalService.complete(application_id)
    return jsonify({'message': 'Rental completed', 'rental': application.to_dict()}), 200
