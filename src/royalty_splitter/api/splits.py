"""
Royalty Splitter - Splits API Blueprint

REST endpoints for split definition, distribution and administration.

Provides access to:
- Define and update splits for works
- Look up splits, owners and per-recipient shares
- Distribute payments and preview payouts
- Issue work identifiers
- Administrative configuration setters
"""

from flask import Blueprint, Response, jsonify, request

from ..monitoring.metrics import metrics
from . import state
from .utils import require_api_key, require_caller, respond, validate_json_schema

splits_bp = Blueprint("splits", __name__)

# PUT /config/<field> -> RoyaltySplitter setter
CONFIG_SETTERS = {
    "admin": ("set_admin", str),
    "paused": ("set_paused", bool),
    "basis_points": ("set_basis_points", int),
    "min_share": ("set_min_share", int),
    "max_share": ("set_max_share", int),
    "max_splits": ("set_max_splits", int),
}


def _service_unavailable():
    return jsonify({"error": "Splitter not initialized"}), 503


# =============================================================================
# Health & Configuration
# =============================================================================


@splits_bp.route("/health", methods=["GET"])
def health():
    """Liveness check including storage backend info."""
    splitter = state.get_splitter()
    if splitter is None:
        return _service_unavailable()

    storage_info = splitter.storage.get_info() if splitter.storage else None
    return jsonify({"status": "healthy", "storage": storage_info}), 200


@splits_bp.route("/config", methods=["GET"])
def get_config():
    splitter = state.get_splitter()
    if splitter is None:
        return _service_unavailable()
    return jsonify(splitter.get_config()), 200


@splits_bp.route("/config/<field>", methods=["PUT"])
@require_api_key
@require_caller
def set_config(field, caller):
    """
    Change one configuration value (administrator only).

    Request body:
        {"value": <new value>}
    """
    splitter = state.get_splitter()
    if splitter is None:
        return _service_unavailable()

    if field not in CONFIG_SETTERS:
        return jsonify({"error": f"Unknown config field: {field}"}), 404

    setter_name, value_type = CONFIG_SETTERS[field]
    data = request.get_json(silent=True)
    valid, message = validate_json_schema(data, {"value": value_type})
    if not valid:
        return jsonify({"error": message}), 400

    ok, result = getattr(splitter, setter_name)(caller, data["value"])
    return respond(ok, result)


# =============================================================================
# Work Identifiers
# =============================================================================


@splits_bp.route("/works", methods=["POST"])
@require_api_key
@require_caller
def issue_work_id(caller):
    splitter = state.get_splitter()
    if splitter is None:
        return _service_unavailable()

    ok, result = splitter.increment_work_id(caller)
    return respond(ok, result, success_status=201)


@splits_bp.route("/works/next", methods=["GET"])
def next_work_id():
    splitter = state.get_splitter()
    if splitter is None:
        return _service_unavailable()
    return jsonify({"next_work_id": splitter.get_next_work_id()}), 200


# =============================================================================
# Splits
# =============================================================================


@splits_bp.route("/splits/<int(signed=True):work_id>", methods=["POST"])
@require_api_key
@require_caller
def define_split(work_id, caller):
    """
    Define the split of a work.

    Request body:
        {
            "splits": [
                {"recipient": "ST2ARTIST", "share": 6000},
                {"recipient": "ST3ARTIST", "share": 4000}
            ]
        }
    """
    splitter = state.get_splitter()
    if splitter is None:
        return _service_unavailable()

    data = request.get_json(silent=True)
    valid, message = validate_json_schema(data, {"splits": list})
    if not valid:
        return jsonify({"error": message}), 400

    ok, result = splitter.define_split(caller, work_id, data["splits"])
    return respond(ok, result, success_status=201)


@splits_bp.route("/splits/<int(signed=True):work_id>", methods=["PUT"])
@require_api_key
@require_caller
def update_split(work_id, caller):
    """Replace the split of a work. Same body as define."""
    splitter = state.get_splitter()
    if splitter is None:
        return _service_unavailable()

    data = request.get_json(silent=True)
    valid, message = validate_json_schema(data, {"splits": list})
    if not valid:
        return jsonify({"error": message}), 400

    ok, result = splitter.update_split(caller, work_id, data["splits"])
    return respond(ok, result)


@splits_bp.route("/splits/<int(signed=True):work_id>", methods=["GET"])
def get_split(work_id):
    """Split, owner and last update of a work."""
    splitter = state.get_splitter()
    if splitter is None:
        return _service_unavailable()

    entries = splitter.get_split(work_id)
    if entries is None:
        return jsonify({"error": "SplitNotFound", "work_id": work_id}), 404

    update = splitter.get_update_record(work_id)
    return jsonify({
        "work_id": work_id,
        "owner": splitter.get_owner(work_id),
        "splits": [entry.to_dict() for entry in entries],
        "update": update.to_dict() if update else None,
    }), 200


@splits_bp.route("/splits/<int(signed=True):work_id>/shares/<recipient>", methods=["GET"])
def get_share(work_id, recipient):
    splitter = state.get_splitter()
    if splitter is None:
        return _service_unavailable()

    share = splitter.get_share(work_id, recipient)
    if share is None:
        return jsonify({"error": "No share recorded", "work_id": work_id, "recipient": recipient}), 404
    return jsonify({"work_id": work_id, "recipient": recipient, "share": share}), 200


# =============================================================================
# Distribution
# =============================================================================


@splits_bp.route("/splits/<int(signed=True):work_id>/distributions", methods=["POST"])
@require_api_key
@require_caller
def distribute(work_id, caller):
    """
    Distribute a payment from the caller across the split.

    Request body:
        {"amount": 10000}

    Returns:
        Payouts in split order plus the retained dust
    """
    splitter = state.get_splitter()
    if splitter is None:
        return _service_unavailable()

    data = request.get_json(silent=True)
    valid, message = validate_json_schema(data, {"amount": int})
    if not valid:
        return jsonify({"error": message}), 400

    ok, result = splitter.distribute(caller, work_id, data["amount"])
    return respond(ok, result)


@splits_bp.route("/splits/<int(signed=True):work_id>/preview", methods=["POST"])
def preview(work_id):
    splitter = state.get_splitter()
    if splitter is None:
        return _service_unavailable()

    data = request.get_json(silent=True)
    valid, message = validate_json_schema(data, {"amount": int})
    if not valid:
        return jsonify({"error": message}), 400

    ok, result = splitter.preview_distribution(work_id, data["amount"])
    return respond(ok, result)


# =============================================================================
# Metrics
# =============================================================================


@splits_bp.route("/metrics", methods=["GET"])
def prometheus_metrics():
    return Response(metrics.to_prometheus(), mimetype="text/plain")
