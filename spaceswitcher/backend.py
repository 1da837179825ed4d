import logging
import sys
from typing import Optional

from flask import Blueprint, Flask, jsonify, request
from flask_cors import CORS

from . import setup_logging
from .errors import ConfigError, ServiceNotInitializedError
from .service import SpaceSwitcherService

api_logger = logging.getLogger("SpaceSwitcher.API")

# Create API Blueprint for the SpaceSwitcher service
spaceswitcher_api = Blueprint("spaceswitcher_api", __name__)

# Service instance (initialized in setup_api function)
service: Optional[SpaceSwitcherService] = None


def _require_service() -> SpaceSwitcherService:
    if service is None:
        raise ServiceNotInitializedError("SpaceSwitcher service is not initialized")
    return service


def _parse_space_id(raw):
    """Parse a space id from a URL segment or JSON value.

    Returns:
        int or None if the value is not an integer id
    """
    if isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def setup_api(app=None, config_path=None, host=None):
    """Set up the SpaceSwitcher API.

    Args:
        app (Flask, optional): Flask application to attach routes to.
            If None, returns a Blueprint.
        config_path (str, optional): Path to config file.
            If None, uses default location.
        host (HostBridge, optional): Host bridge passed to the service.

    Returns:
        Flask or Blueprint: The Flask app or Blueprint with API routes
    """
    global service

    api_logger.info("=== Initializing SpaceSwitcher API ===")

    service = SpaceSwitcherService(config_path, host=host)
    api_logger.info("SpaceSwitcher service initialized")

    if app:
        app.register_blueprint(spaceswitcher_api, url_prefix="/spaceswitcher")
        return app

    return spaceswitcher_api


@spaceswitcher_api.errorhandler(ServiceNotInitializedError)
def service_not_initialized(e):
    return jsonify({"error": str(e)}), 503


@spaceswitcher_api.route("/health", methods=["GET"])
def health():
    """Basic health check."""
    _require_service()
    return jsonify({"ok": True})


@spaceswitcher_api.route("/status", methods=["GET"])
def get_status():
    """Get the current status of the SpaceSwitcher service."""
    return jsonify(_require_service().get_status())


@spaceswitcher_api.route("/start", methods=["POST"])
def start_service():
    svc = _require_service()
    result = svc.start()
    return jsonify({"success": result, "status": svc.get_status()})


@spaceswitcher_api.route("/stop", methods=["POST"])
def stop_service():
    svc = _require_service()
    result = svc.stop()
    return jsonify({"success": result, "status": svc.get_status()})


@spaceswitcher_api.route("/displays", methods=["GET"])
def get_displays():
    """Get displays left to right with their spaces and labels."""
    return jsonify(_require_service().get_displays())


@spaceswitcher_api.route("/refresh", methods=["POST"])
def refresh():
    svc = _require_service()
    changed = svc.refresh_now()
    return jsonify({"changed": changed, "displays": svc.get_displays()})


@spaceswitcher_api.route("/switch", methods=["POST"])
def switch():
    """Activate a space.

    Request body (one of):
        {"space_id": 123}
        {"index": 4}

    Response:
        {"success": bool} - false when the target is not addressable
    """
    svc = _require_service()
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "No data provided"}), 400

    if "space_id" in data:
        space_id = _parse_space_id(data["space_id"])
        if space_id is None:
            return jsonify({"error": "space_id must be an integer"}), 400
        return jsonify({"success": svc.switch_to_space(space_id)})

    if "index" in data:
        index = data["index"]
        if isinstance(index, bool) or not isinstance(index, int):
            return jsonify({"error": "index must be an integer"}), 400
        return jsonify({"success": svc.switch_to_index(index)})

    return jsonify({"error": "Provide space_id or index"}), 400


@spaceswitcher_api.route("/names/<space_id>", methods=["PUT"])
def rename_space(space_id):
    """Rename a space. An empty or blank name clears the stored label.

    Request body:
        {"name": str}
    """
    svc = _require_service()
    parsed_id = _parse_space_id(space_id)
    if parsed_id is None:
        return jsonify({"error": "space_id must be an integer"}), 400

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("name", ""), str):
        return jsonify({"error": "Provide a name string"}), 400

    label = svc.rename_space(parsed_id, data.get("name", ""))
    return jsonify({"success": True, "label": label})


@spaceswitcher_api.route("/names/<space_id>", methods=["DELETE"])
def clear_space_name(space_id):
    svc = _require_service()
    parsed_id = _parse_space_id(space_id)
    if parsed_id is None:
        return jsonify({"error": "space_id must be an integer"}), 400

    label = svc.clear_space_name(parsed_id)
    return jsonify({"success": True, "label": label})


@spaceswitcher_api.route("/names", methods=["DELETE"])
def reset_names():
    """Clear every stored space name."""
    _require_service().reset_names()
    return jsonify({"success": True})


@spaceswitcher_api.route("/settings", methods=["GET"])
def get_settings():
    return jsonify(_require_service().config_manager.get_settings())


@spaceswitcher_api.route("/settings", methods=["PUT", "PATCH"])
def update_settings():
    """Update application settings.

    Request body (partial updates allowed):
        {
            "poll_interval": float,
            "follow_up_delay": float
        }

    Response:
        {"success": true, "settings": {...}}
    """
    svc = _require_service()
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "No data provided"}), 400

    try:
        svc.config_manager.update_settings(data)
    except ConfigError as e:
        return jsonify({"error": str(e)}), 400

    if "follow_up_delay" in data:
        svc.model.follow_up_delay = svc.config_manager.get_setting("follow_up_delay")

    return jsonify({"success": True, "settings": svc.config_manager.get_settings()})


def create_app(config_path=None, host=None):
    """Create a Flask app with the SpaceSwitcher API mounted."""
    app = Flask(__name__)

    # Enable CORS for all routes
    CORS(app, resources={r"/*": {"origins": "*"}})

    setup_api(app, config_path=config_path, host=host)
    return app


def main():
    """Start the service and serve the API."""
    setup_logging()

    app = create_app()
    svc = _require_service()
    svc.start()

    api_host = svc.config_manager.get_setting("api_host", "127.0.0.1")
    api_port = svc.config_manager.get_setting("api_port", 5556)
    print(f"Starting SpaceSwitcher API server at http://{api_host}:{api_port}")
    try:
        app.run(host=api_host, port=api_port)
    finally:
        svc.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
