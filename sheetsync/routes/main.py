"""
Health check and JSON error handlers.
"""
from flask import Blueprint, jsonify

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """Health check endpoint for uptime monitoring."""
    return jsonify({
        'status': 'healthy',
        'service': 'sheet-sync'
    }), 200


@main_bp.app_errorhandler(404)
def not_found(error):
    return jsonify({'status': 'error', 'code': 'NotFound', 'message': 'Not found'}), 404


@main_bp.app_errorhandler(405)
def method_not_allowed(error):
    return jsonify({'status': 'error', 'code': 'MethodNotAllowed', 'message': 'Method not allowed'}), 405
