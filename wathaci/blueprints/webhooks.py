"""Webhooks blueprint: /lenco/webhook

Receives Lenco payment webhooks. Raw body is required for signature
verification, so the body is read as bytes and never re-serialised.

Route Map:
  POST    /lenco/webhook  verify, reconcile, acknowledge
  OPTIONS /lenco/webhook  CORS preflight
"""

import logging

from flask import Blueprint, current_app, jsonify, make_response, request

from wathaci.extensions import limiter
from wathaci.services.webhook_service import handle_lenco_webhook

logger = logging.getLogger(__name__)

webhooks_bp = Blueprint("webhooks", __name__, url_prefix="/lenco")


def _cors_response(response):
    """Add CORS headers (the edge deployment is called cross-origin)."""
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = (
        "authorization, x-client-info, apikey, content-type, "
        f"{current_app.config['LENCO_SIGNATURE_HEADER']}"
    )
    return response


def _webhook_rate_limit():
    return current_app.config["LENCO_WEBHOOK_RATE_LIMIT"]


@webhooks_bp.route("/webhook", methods=["OPTIONS"])
def lenco_webhook_preflight():
    """Handle CORS preflight requests."""
    return _cors_response(make_response("", 204))


@webhooks_bp.route("/webhook", methods=["POST"])
@limiter.limit(_webhook_rate_limit)
def lenco_webhook():
    """Receive and process a Lenco webhook event.

    1. Get raw body (required for signature verification)
    2. Verify signature with LENCO_WEBHOOK_SECRET
    3. Parse, update payment, fan out, notify
    4. Log the attempt and answer

    200 on full or partial processing, 401 bad signature, 400 bad payload,
    413 oversized body, 500 unexpected failure.
    """
    raw_body = request.get_data(cache=False)
    signature = request.headers.get(current_app.config["LENCO_SIGNATURE_HEADER"])

    status_code, body = handle_lenco_webhook(raw_body, signature)
    return _cors_response(make_response(jsonify(body), status_code))
