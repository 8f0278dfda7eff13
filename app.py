"""
BloodSync - Blood Bank Management System
Flask JSON API over donors, blood inventory and transfusion requests,
plus the single-page frontend served from the static directory.
"""
import os

from flask import Blueprint, Flask, abort, current_app, jsonify, request, send_from_directory
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, NotFound

from settings import Config  # reads .env before any logger is configured
from errors import BloodSyncError, StoreError
from handlers import DonorHandler, InventoryHandler, RequestHandler
from log_config import configure_logging, get_logger
from store import build_store

logger = get_logger(__name__)

api = Blueprint('api', __name__, url_prefix='/api')


def _handlers():
    return current_app.extensions['bloodsync']


def _json_body():
    data = request.get_json(silent=True)
    if data is None and not request.get_data():
        return {}
    return data


# ============== DONORS ==============

@api.route('/donors', methods=['GET'])
def list_donors():
    return jsonify(_handlers()['donors'].list())


@api.route('/donors', methods=['POST'])
def create_donor():
    donor = _handlers()['donors'].create(_json_body())
    return jsonify({'success': True, 'donor': donor}), 201


@api.route('/donors/<donor_id>', methods=['DELETE'])
def delete_donor(donor_id):
    _handlers()['donors'].delete(donor_id)
    return jsonify({'success': True, 'message': 'Donor deleted successfully'})


# ============== INVENTORY ==============

@api.route('/inventory', methods=['GET'])
def list_inventory():
    return jsonify(_handlers()['inventory'].list())


@api.route('/inventory', methods=['POST'])
def create_blood_unit():
    blood_unit = _handlers()['inventory'].create(_json_body())
    return jsonify({'success': True, 'bloodUnit': blood_unit}), 201


@api.route('/inventory/<unit_id>', methods=['DELETE'])
def delete_blood_unit(unit_id):
    _handlers()['inventory'].delete(unit_id)
    return jsonify({'success': True, 'message': 'Blood unit deleted successfully'})


# ============== REQUESTS ==============

@api.route('/requests', methods=['GET'])
def list_requests():
    return jsonify(_handlers()['requests'].list())


@api.route('/requests', methods=['POST'])
def create_request():
    blood_request = _handlers()['requests'].create(_json_body())
    return jsonify({'success': True, 'request': blood_request}), 201


@api.route('/requests/<request_id>', methods=['PUT'])
def update_request(request_id):
    blood_request = _handlers()['requests'].update(request_id, _json_body())
    return jsonify({'success': True, 'request': blood_request})


@api.route('/requests/<request_id>', methods=['DELETE'])
def delete_request(request_id):
    _handlers()['requests'].delete(request_id)
    return jsonify({'success': True, 'message': 'Request deleted successfully'})


# ============== ERROR HANDLERS ==============

@api.errorhandler(BloodSyncError)
def handle_bloodsync_error(e):
    if isinstance(e, StoreError):
        logger.error('store_error', path=request.path, message=e.message)
    return jsonify({'success': False, 'message': e.message}), e.status_code


@api.errorhandler(HTTPException)
def handle_http_error(e):
    return jsonify({'success': False, 'message': e.description}), e.code


@api.errorhandler(Exception)
def handle_unexpected_error(e):
    logger.exception('unhandled_api_error', path=request.path)
    return jsonify({'success': False, 'message': str(e)}), 500


def _is_api_path(path):
    return path == 'api' or path.startswith('api/')


def _served_by_api(e):
    """True when an API rule handles this URL for one of the methods the error allows."""
    adapter = current_app.create_url_adapter(request)
    for method in getattr(e, 'valid_methods', None) or ():
        try:
            endpoint, _ = adapter.match(method=method)
        except HTTPException:
            continue
        if endpoint != 'frontend':
            return True
    return False


def handle_routing_error(e):
    # Unmatched /api URLs never reach the blueprint, so answer them here
    if _is_api_path(request.path.lstrip('/')):
        if e.code == 405 and not _served_by_api(e):
            # Only the GET-only frontend rule matched
            e = NotFound()
        return jsonify({'success': False, 'message': e.description}), e.code
    return e


# ============== FRONTEND ==============

def frontend(path=''):
    """Serve a static asset when one exists, otherwise the SPA entry point."""
    if _is_api_path(path):
        abort(404)
    static_dir = current_app.config['STATIC_DIR']
    if path and os.path.isfile(os.path.join(static_dir, path)):
        return send_from_directory(static_dir, path)
    return send_from_directory(static_dir, 'index.html')


# ============== APP FACTORY ==============

def create_app(config_object=Config, store=None):
    app = Flask(__name__, static_folder=None)
    app.config.from_object(config_object)
    app.json.sort_keys = False

    configure_logging(app.config['LOG_LEVEL'], app.config['APP_ENV'])
    CORS(app)

    if store is None:
        store = build_store(app.config)
    app.extensions['bloodsync'] = {
        'donors': DonorHandler(store),
        'inventory': InventoryHandler(store),
        'requests': RequestHandler(store),
    }

    app.register_blueprint(api)
    app.register_error_handler(HTTPException, handle_routing_error)
    app.add_url_rule('/', 'frontend', frontend, methods=['GET'])
    app.add_url_rule('/<path:path>', 'frontend', frontend, methods=['GET'])
    return app


def main():
    app = create_app()
    port = app.config['PORT']
    logger.info(
        'server_started',
        port=port,
        frontend=f'http://localhost:{port}/',
        api=f'http://localhost:{port}/api',
        environment=app.config['APP_ENV'],
    )
    app.run(host='0.0.0.0', port=port, debug=app.config['APP_ENV'] == 'development')


if __name__ == '__main__':
    main()
