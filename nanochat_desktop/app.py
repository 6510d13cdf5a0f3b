import os
import logging
from flask import Flask, request, jsonify
from dotenv import load_dotenv

from . import config_manager
from . import backend_comm
from .config_manager import Config, ConfigError
from .backend_comm import ValidationError

# --- Load Environment Variables ---
load_dotenv() # Load .env file if present

# --- Logging Setup ---
logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("DesktopApp")

# --- Flask App Initialization ---
app = Flask(__name__)

app.config['HOST'] = os.environ.get('NANOCHAT_HOST', '127.0.0.1')
app.config['PORT'] = int(os.environ.get('NANOCHAT_PORT', 5000))


# --- Commands ---
def get_config():
    return config_manager.load()


def save_config(config):
    config_manager.save(config)


def validate_connection(server_url, api_key):
    return backend_comm.validate_connection(server_url, api_key)


def _json_object_body():
    """Returns (data, error_response); exactly one of them is None."""
    if not request.is_json:
        return None, (jsonify({"error": "Request must be JSON"}), 400)
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None, (jsonify({"error": "Request body must be a JSON object"}), 400)
    return data, None


# --- API Routes ---
@app.route('/api/health', methods=['GET'])
def health_check():
    config_path = None
    configured = False
    try:
        config_path = str(config_manager.resolve_path())
        configured = config_manager.is_valid(config_manager.load())
    except ConfigError as e:
        logger.warning(f"Health check could not read config: {e}")

    return jsonify({
        "status": "ok",
        "config_path": config_path,
        "configured": configured,
        }), 200


@app.route('/api/config', methods=['GET'])
def get_config_route():
    logger.info("GET /api/config")
    try:
        config = get_config()
    except ConfigError as e:
        logger.error(f"Failed to load config: {e}")
        return jsonify({"error": str(e)}), 500
    return jsonify(config.to_dict()), 200


@app.route('/api/config', methods=['PUT'])
def save_config_route():
    logger.info("PUT /api/config")
    data, error = _json_object_body()
    if error:
        logger.warning("PUT config request received without a JSON object body.")
        return error

    try:
        config = Config.from_dict(data)
    except (TypeError, ValueError) as e:
        logger.warning(f"PUT config request with invalid fields: {e}")
        return jsonify({"error": f"Invalid configuration data: {e}"}), 400

    try:
        save_config(config)
    except ConfigError as e:
        logger.error(f"Failed to save config: {e}")
        return jsonify({"error": str(e)}), 500

    return jsonify({"message": "Configuration saved"}), 200


@app.route('/api/validate-connection', methods=['POST'])
def validate_connection_route():
    logger.info("POST /api/validate-connection")
    data, error = _json_object_body()
    if error:
        logger.warning("Validate request received without a JSON object body.")
        return error

    server_url = data.get('server_url')
    api_key = data.get('api_key')
    if not isinstance(server_url, str) or not isinstance(api_key, str):
        return jsonify({"error": "server_url and api_key must be strings"}), 400

    try:
        valid = validate_connection(server_url, api_key)
    except ValidationError as e:
        return jsonify({"error": str(e), "kind": e.kind}), 502

    return jsonify({"valid": valid}), 200


# --- Main Entry Point (for development) ---
def main():
    logger.info(f"Starting nanochat desktop backend on {app.config['HOST']}:{app.config['PORT']}...")
    app.run(
        host=app.config['HOST'],
        port=app.config['PORT'],
        debug=os.environ.get('FLASK_DEBUG', 'False').lower() == 'true',
    )


if __name__ == '__main__':
    main()
