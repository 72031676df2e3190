from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import IntegrityError
from rental_desk.utils.decorators import token_required, admin_required, handles_errors
from rental_desk.utils.parsing import parse_bool, parse_optional_money, parse_positive_int
from rental_desk.models import User, Room, Workspace, Client, RentalApplication, WorkspaceStatus
from rental_desk.extensions import db
from werkzeug.security import generate_password_hash

admin_bp = Blueprint('admin', __name__)

ROOM_FIELDS = ('name', 'number', 'capacity', 'is_coworking', 'is_active',
               'hourly_rate', 'daily_rate', 'weekly_rate', 'monthly_rate')
WORKSPACE_FIELDS = ('name', 'number', 'status', 'daily_rate', 'weekly_rate', 'monthly_rate')
CLIENT_FIELDS = ('first_name', 'last_name', 'phone', 'email')

MONEY_FIELDS = {'hourly_rate', 'daily_rate', 'weekly_rate', 'monthly_rate'}
BOOL_FIELDS = {'is_coworking', 'is_active'}


def _apply(obj, data, fields):
    """Copy known fields onto a model, raising ValidationError on bad values."""
    for attr in fields:
        if attr not in data:
            continue
        value = data[attr]
        if attr in MONEY_FIELDS:
            value = parse_optional_money(value, attr)
        elif attr in BOOL_FIELDS:
            value = parse_bool(value, attr)
        elif attr == 'capacity':
            value = parse_positive_int(value, attr)
        setattr(obj, attr, value)


def _commit_or_400(message):
    try:
        db.session.commit()
        return None
    except IntegrityError as e:
        db.session.rollback()
        current_app.logger.warning("%s: %s", message, e.orig)
        return jsonify({'message': message}), 400


# --- USERS MANAGEMENT ---

@admin_bp.route('/users', methods=['GET'])
@token_required
@admin_required
def get_users(current_user):
    users = User.query.order_by(User.id).all()
    return jsonify([u.to_dict() for u in users]), 200

@admin_bp.route('/users', methods=['POST'])
@token_required
@admin_required
def create_user(current_user):
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'message': 'No input data provided'}), 400

    if User.query.filter_by(username=data.get('username')).first():
        return jsonify({'message': 'Username already exists'}), 400
    if User.query.filter_by(email=data.get('email')).first():
        return jsonify({'message': 'Email already exists'}), 400
    if not data.get('password'):
        return jsonify({'message': 'Password is required'}), 400
    if data.get('role', 'manager') not in ('admin', 'manager'):
        return jsonify({'message': 'Role must be admin or manager'}), 400

    new_user = User(
        username=data.get('username'),
        email=data.get('email'),
        password_hash=generate_password_hash(data.get('password')),
        role=data.get('role', 'manager')
    )
    db.session.add(new_user)
    error = _commit_or_400('Invalid user data')
    if error:
        return error
    return jsonify({'message': 'User created successfully', 'user': new_user.to_dict()}), 201


# --- ROOMS MANAGEMENT ---

@admin_bp.route('/rooms', methods=['GET'])
@token_required
def get_rooms(current_user):
    rooms = Room.query.order_by(Room.id).all()
    return jsonify([r.to_dict() for r in rooms]), 200

@admin_bp.route('/rooms', methods=['POST'])
@token_required
@admin_required
@handles_errors
def create_room(current_user):
    data = request.get_json(silent=True)
    if not data or not data.get('name'):
        return jsonify({'message': 'Room name is required'}), 400
    if Room.query.filter_by(name=data.get('name')).first():
        return jsonify({'message': 'Room name already exists'}), 400

    new_room = Room()
    _apply(new_room, data, ROOM_FIELDS)
    db.session.add(new_room)
    error = _commit_or_400('Invalid room data')
    if error:
        return error
    return jsonify({'message': 'Room created', 'room': new_room.to_dict()}), 201

@admin_bp.route('/rooms/<int:room_id>', methods=['PUT'])
@token_required
@admin_required
@handles_errors
def update_room(current_user, room_id):
    room = db.session.get(Room, room_id)
    if not room:
        return jsonify({'message': 'Room not found'}), 404

    _apply(room, request.get_json(silent=True) or {}, ROOM_FIELDS)
    error = _commit_or_400('Invalid room data')
    if error:
        return error
    return jsonify({'message': 'Room updated', 'room': room.to_dict()}), 200

@admin_bp.route('/rooms/<int:room_id>', methods=['DELETE'])
@token_required
@admin_required
def delete_room(current_user, room_id):
    room = db.session.get(Room, room_id)
    if not room:
        return jsonify({'message': 'Room not found'}), 404

    # Rooms with rentals are deactivated instead, so history stays intact
    if RentalApplication.query.filter_by(room_id=room.id).first():
        room.is_active = False
        db.session.commit()
        return jsonify({'message': 'Room has rentals and was deactivated', 'room': room.to_dict()}), 200

    for workspace in room.workspaces:
        db.session.delete(workspace)
    db.session.delete(room)
    db.session.commit()
    return jsonify({'message': 'Room deleted'}), 200


# --- WORKSPACES MANAGEMENT ---

@admin_bp.route('/rooms/<int:room_id>/workspaces', methods=['GET'])
@token_required
def get_workspaces(current_user, room_id):
    room = db.session.get(Room, room_id)
    if not room:
        return jsonify({'message': 'Room not found'}), 404
    return jsonify([w.to_dict() for w in room.workspaces]), 200

@admin_bp.route('/rooms/<int:room_id>/workspaces', methods=['POST'])
@token_required
@admin_required
@handles_errors
def create_workspace(current_user, room_id):
    room = db.session.get(Room, room_id)
    if not room:
        return jsonify({'message': 'Room not found'}), 404
    if not room.is_coworking:
        return jsonify({'message': 'Workspaces can only be added to coworking rooms'}), 400

    data = request.get_json(silent=True)
    if not data or not data.get('name'):
        return jsonify({'message': 'Workspace name is required'}), 400
    if data.get('status', WorkspaceStatus.AVAILABLE.value) not in [s.value for s in WorkspaceStatus]:
        return jsonify({'message': 'Invalid workspace status'}), 400

    workspace = Workspace(room_id=room.id)
    _apply(workspace, data, WORKSPACE_FIELDS)
    db.session.add(workspace)
    error = _commit_or_400('Workspace name already exists in this room')
    if error:
        return error
    return jsonify({'message': 'Workspace created', 'workspace': workspace.to_dict()}), 201

@admin_bp.route('/workspaces/<int:workspace_id>', methods=['PUT'])
@token_required
@admin_required
@handles_errors
def update_workspace(current_user, workspace_id):
    workspace = db.session.get(Workspace, workspace_id)
    if not workspace:
        return jsonify({'message': 'Workspace not found'}), 404

    data = request.get_json(silent=True) or {}
    if 'status' in data and data['status'] not in [s.value for s in WorkspaceStatus]:
        return jsonify({'message': 'Invalid workspace status'}), 400
    _apply(workspace, data, WORKSPACE_FIELDS)
    error = _commit_or_400('Workspace name already exists in this room')
    if error:
        return error
    return jsonify({'message': 'Workspace updated', 'workspace': workspace.to_dict()}), 200


# --- CLIENTS MANAGEMENT ---

@admin_bp.route('/clients', methods=['GET'])
@token_required
def get_clients(current_user):
    q = Client.query
    search = request.args.get('search')
    if search:
        pattern = f"%{search}%"
        q = q.filter(db.or_(Client.first_name.ilike(pattern), Client.last_name.ilike(pattern),
                            Client.phone.ilike(pattern)))
    return jsonify([c.to_dict() for c in q.order_by(Client.last_name, Client.first_name).all()]), 200

@admin_bp.route('/clients', methods=['POST'])
@token_required
@handles_errors
def create_client(current_user):
    data = request.get_json(silent=True)
    if not data or not data.get('first_name') or not data.get('last_name'):
        return jsonify({'message': 'first_name and last_name are required'}), 400

    client = Client()
    _apply(client, data, CLIENT_FIELDS)
    db.session.add(client)
    db.session.commit()
    current_app.logger.info("Client %s created by %s", client.id, current_user.username)
    return jsonify({'message': 'Client created', 'client': client.to_dict()}), 201

@admin_bp.route('/clients/<int:client_id>', methods=['PUT'])
@token_required
@handles_errors
def update_client(current_user, client_id):
    client = db.session.get(Client, client_id)
    if not client:
        return jsonify({'message': 'Client not found'}), 404

    _apply(client, request.get_json(silent=True) or {}, CLIENT_FIELDS)
    db.session.commit()
    return jsonify({'message': 'Client updated', 'client': client.to_dict()}), 200
