import pytest
from werkzeug.security import generate_password_hash
from rental_desk import create_app, db
from rental_desk.config import TestingConfig
from rental_desk.models import User, Client, Room, Workspace

@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def init_data(app):
    manager = User(username='manager', email='manager@test.com', role='manager',
                   password_hash=generate_password_hash('secret'))
    admin = User(username='admin', email='admin@test.com', role='admin',
                 password_hash=generate_password_hash('secret'))
    customer = Client(first_name='Anna', last_name='Petrova', phone='+100')
    hall = Room(name='Hall', number='101', capacity=30, hourly_rate=50, daily_rate=300, monthly_rate=5000)
    open_space = Room(name='Open Space', number='201', capacity=10, is_coworking=True,
                      hourly_rate=0, daily_rate=200, weekly_rate=1000, monthly_rate=3000)
    open_space.workspaces = [
        Workspace(name=f'Desk {n}', number=str(n), daily_rate=20, weekly_rate=100, monthly_rate=400)
        for n in (1, 2, 3)
    ]
    db.session.add_all([manager, admin, customer, hall, open_space])
    db.session.commit()
    return {
        'manager': manager,
        'admin': admin,
        'customer': customer,
        'hall': hall,
        'open_space': open_space,
        'desks': list(open_space.workspaces),
    }

def _login(client, username):
    res = client.post('/api/auth/login', json={'username': username, 'password': 'secret'})
    assert res.status_code == 200
    return {'Authorization': f"Bearer {res.get_json()['token']}"}

@pytest.fixture
def auth_headers(client, init_data):
    return _login(client, 'manager')

@pytest.fixture
def admin_headers(client, init_data):
    return _login(client, 'admin')
