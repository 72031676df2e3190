import logging

import click
from flask import Flask
from werkzeug.security import generate_password_hash

from rental_desk.config import DevelopmentConfig
from rental_desk.extensions import db, migrate

def create_app(config_class=DevelopmentConfig):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Services log through their module loggers; route errors go to app.logger
    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
    app.logger.setLevel(app.config['LOG_LEVEL'])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Make sure every model is registered on the metadata
    from rental_desk import models  # noqa: F401

    # Register Blueprints
    from rental_desk.api.routes.auth import auth_bp
    from rental_desk.api.routes.rentals import rentals_bp
    from rental_desk.api.routes.invoices import invoices_bp
    from rental_desk.api.routes.admin import admin_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(rentals_bp, url_prefix='/api/rentals')
    app.register_blueprint(invoices_bp, url_prefix='/api/invoices')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')

    @app.route('/health')
    def health():
        return {"status": "ok", "app": "RentalDesk"}

    app.cli.add_command(seed_command)

    return app


@click.command('seed')
@click.option('--admin-password', default='password', help='Password of the seeded admin account.')
def seed_command(admin_password):
    """Create the tables and a starter set of users, rooms and a client."""
    from rental_desk.models import User, Room, Workspace, Client

    db.create_all()

    if not User.query.filter_by(username='admin').first():
        db.session.add(User(
            username='admin',
            email='admin@rental-desk.local',
            password_hash=generate_password_hash(admin_password),
            role='admin'
        ))
        click.echo("Admin created (admin)")

    rooms_data = [
        {"name": "Conference Hall", "number": "101", "capacity": 40, "hourly_rate": 50, "daily_rate": 350, "monthly_rate": 6000},
        {"name": "Meeting Room", "number": "102", "capacity": 8, "hourly_rate": 20, "daily_rate": 140, "monthly_rate": 2500},
        {"name": "Open Space", "number": "201", "capacity": 12, "is_coworking": True,
         "hourly_rate": 0, "daily_rate": 200, "weekly_rate": 1200, "monthly_rate": 4000},
    ]
    for r_data in rooms_data:
        if not Room.query.filter_by(name=r_data['name']).first():
            room = Room(**r_data)
            db.session.add(room)
            click.echo(f"Room {room.name} created.")
            if room.is_coworking:
                for n in range(1, 5):
                    room.workspaces.append(Workspace(
                        name=f"Desk {n}", number=str(n),
                        daily_rate=25, weekly_rate=150, monthly_rate=500
                    ))

    if not Client.query.first():
        db.session.add(Client(first_name='Anna', last_name='Petrova', phone='+10000000000', email='anna@example.com'))
        click.echo("Client created.")

    db.session.commit()
    click.echo("Database seeded successfully.")
