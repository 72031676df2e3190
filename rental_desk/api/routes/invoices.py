from flask import Blueprint, request, jsonify
from rental_desk.services.invoice_service import InvoiceService
from rental_desk.utils.decorators import token_required, handles_errors

invoices_bp = Blueprint('invoices', __name__)

@invoices_bp.route('/<int:invoice_id>', methods=['GET'])
@token_required
@handles_errors
def get_invoice(current_user, invoice_id):
    return jsonify(InvoiceService.get(invoice_id).to_dict()), 200

@invoices_bp.route('/<int:invoice_id>/payments', methods=['POST'])
@token_required
@handles_errors
def register_payment(current_user, invoice_id):
    data = request.get_json(silent=True) or {}
    invoice = InvoiceService.register_payment(invoice_id, data.get('amount'))
    return jsonify({'message': 'Payment registered', 'invoice': invoice.to_dict()}), 200
