"""
Sync endpoint (HTTP). POST carries writes, GET carries reads.

Every response is HTTP 200; callers inspect ``status`` in the envelope.
"""
from flask import Blueprint, current_app, jsonify, request

api_bp = Blueprint('api', __name__)


def _coordinator():
    return current_app.extensions["request_coordinator"]


@api_bp.route('/exec', methods=['POST'])
def write():
    """REGISTER, LOGIN and SYNC_DATA."""
    # Clients often post text/plain to skip the CORS preflight, so don't
    # insist on a JSON content type.
    payload = request.get_json(force=True, silent=True) or {}
    return jsonify(_coordinator().handle_write(payload)), 200


@api_bp.route('/exec', methods=['GET'])
def read():
    """GET_DATA."""
    return jsonify(_coordinator().handle_read(request.args.to_dict())), 200
