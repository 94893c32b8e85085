import base64
import logging
import os
import random

from flask import Flask, Response, jsonify, request

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)

FAILURE_RATE = float(os.getenv("MOCK_FAILURE_RATE", "0.10"))
USERNAME = os.getenv("MOCK_USERNAME", "admin")
PASSWORD = os.getenv("MOCK_PASSWORD", "admin")

APIS = {
    "6f1c2a9e-3b5d-4c1e-9f2a-7d8e0b1c2d3e": "Orders API",
    "a2b3c4d5-e6f7-4a8b-9c0d-1e2f3a4b5c6d": "Payments API",
    "0d9c8b7a-6f5e-4d3c-2b1a-0f9e8d7c6b5a": "Customer Profile API",
    "123": "My API name",
}

APPLICATIONS = {
    "3e2d1c0b-9a8f-4e7d-6c5b-4a3f2e1d0c9b": "Mobile Banking App",
    "c9b8a7f6-e5d4-4c3b-a291-807f6e5d4c3b": "Partner Portal",
    "321": "My app name",
}


def _authorized() -> bool:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Basic "):
        return False
    try:
        decoded = base64.b64decode(header[len("Basic ") :]).decode("utf-8")
    except ValueError:
        return False
    return decoded == f"{USERNAME}:{PASSWORD}"


def _resource(collection: dict, kind: str, resource_id: str) -> tuple[Response, int]:
    """
    Returns one resource as {"id", "name"}.

    Randomly returns HTTP 500 at the configured failure rate to simulate
    management API instability, which the enrichment must absorb.
    """
    if not _authorized():
        return jsonify({"message": "Unauthorized", "http_status": 401}), 401

    if random.random() < FAILURE_RATE:
        logger.warning("Simulating management API failure (500)")
        return jsonify({"message": "Service temporarily unavailable", "http_status": 500}), 500

    name = collection.get(resource_id)
    if name is None:
        return jsonify({"message": f"{kind} [{resource_id}] can not be found.", "http_status": 404}), 404

    logger.info("Returning %s %s", kind, resource_id)
    return jsonify({"id": resource_id, "name": name}), 200


@app.route("/health")
def health() -> tuple[Response, int]:
    return jsonify({"status": "ok"}), 200


@app.route("/management/apis/<resource_id>")
def get_api(resource_id: str) -> tuple[Response, int]:
    return _resource(APIS, "Api", resource_id)


@app.route("/management/applications/<resource_id>")
def get_application(resource_id: str) -> tuple[Response, int]:
    return _resource(APPLICATIONS, "Application", resource_id)


if __name__ == "__main__":
    port = int(os.getenv("MOCK_PORT", "8083"))
    logger.info(
        "Starting mock management API on port %d (failure_rate=%.0f%%)", port, FAILURE_RATE * 100
    )
    app.run(host="0.0.0.0", port=port)
