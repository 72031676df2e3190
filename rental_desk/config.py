import os
from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(__file__), '.env'))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-prod'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///rental_desk.db'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    JWT_EXPIRATION_HOURS = int(os.environ.get('JWT_EXPIRATION_HOURS', '24'))

    # Rental rules
    MAX_RENTAL_DAYS = int(os.environ.get('MAX_RENTAL_DAYS', '365'))  # longest range a single application may span
    OPENING_HOUR = 9    # first hourly slot shown in occupancy grids
    CLOSING_HOUR = 22   # grid stops before this hour

class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = 'DEBUG'

class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'

class ProductionConfig(Config):
    DEBUG = False
    # In prod, rely on env vars strictly
