import os
import logging
from typing import Any
from dotenv import load_dotenv

# Initialize environment configuration from local or project-level .env files
dotenv_paths = [
    os.path.join(os.path.dirname(__file__), '.env'),
    os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'),
    os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env.example')
]

for path in dotenv_paths:
    if os.path.exists(path):
        load_dotenv(path)
        break

from flask import Flask, jsonify
from flask_cors import CORS
from config import config
from db import init_db
from routes.discounts import discounts_bp

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

app.register_blueprint(discounts_bp, url_prefix="/api/v1")

@app.route("/api/v1/health")
def health() -> Any:
    """
    Verifies the operational status of the Flask application.

    Returns:
        A JSON response indicating the service is healthy.
    """
    return jsonify({"status": "ok"})

if __name__ == "__main__":
    # Ensure the discount tables exist before accepting requests
    init_db()
    logger.info(f"Composition policy: {config.COMPOSITION_POLICY}, default tier: {config.DEFAULT_MEMBERSHIP_TIER}")
    app.run(port=int(os.environ.get("PORT", "8000")), debug=os.environ.get("FLASK_DEBUG", "false").lower() == "true")
