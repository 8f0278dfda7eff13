"""
Environment configuration for BloodSync.

Values come from the process environment; a .env file next to this module
is read first when present.
"""
import os

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
load_dotenv(os.path.join(BASE_DIR, '.env'))


class Config:
    PORT = int(os.environ.get('PORT', 3000))
    APP_ENV = os.environ.get('APP_ENV', 'development')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # 'dynamodb' or 'memory'
    STORE_BACKEND = os.environ.get('STORE_BACKEND', 'dynamodb')
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')
    DYNAMODB_ENDPOINT_URL = os.environ.get('DYNAMODB_ENDPOINT_URL')

    # Table names used by this app
    TABLE_NAMES = {
        'donors': os.environ.get('DONORS_TABLE', 'Donors'),
        'inventory': os.environ.get('INVENTORY_TABLE', 'Inventory'),
        'requests': os.environ.get('REQUESTS_TABLE', 'BloodRequests'),
    }

    # Snapshot directory for the memory backend; unset keeps data in process only
    DATA_DIR = os.environ.get('DATA_DIR')

    STATIC_DIR = os.path.join(BASE_DIR, os.environ.get('STATIC_DIR', 'public'))


class TestConfig(Config):
    __test__ = False

    TESTING = True
    APP_ENV = 'test'
    STORE_BACKEND = 'memory'
    DATA_DIR = None
