import os
import logging

import click
from flask import Flask, jsonify

from wathaci.config import config_by_name
from wathaci.extensions import db, migrate, limiter


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from wathaci import models  # noqa: F401

    # --- Register blueprints ---
    from wathaci.blueprints.webhooks import webhooks_bp

    app.register_blueprint(webhooks_bp)

    # --- Liveness probe ---
    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    # --- Error handlers (JSON, this is an API-only service) ---
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"success": False, "error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"success": False, "error": "Method not allowed"}), 405

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({"success": False, "error": "Too many requests"}), 429

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({"success": False, "error": "Internal server error"}), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        # JSON only: nothing to load, nothing to frame
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none';"
        )
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("sign-webhook")
    @click.argument("body_file", type=click.File("rb"))
    def sign_webhook(body_file):
        """Print Lenco signatures for a webhook body file.

        Signs with the configured LENCO_WEBHOOK_SECRET, for smoke-testing a
        deployed endpoint with curl.

        Usage:
            flask sign-webhook payload.json
        """
        from wathaci.services.signature_service import create_lenco_signature

        secret = app.config.get("LENCO_WEBHOOK_SECRET")
        if not secret:
            raise click.ClickException("LENCO_WEBHOOK_SECRET is not set.")

        signatures = create_lenco_signature(body_file.read(), secret)
        header = app.config["LENCO_SIGNATURE_HEADER"]
        click.echo(f"{header} (hex):    {signatures['hex']}")
        click.echo(f"{header} (base64): {signatures['base64']}")

    @app.cli.command("webhook-logs")
    @click.option("--status", type=click.Choice(["processed", "rejected", "failed"]),
                  default=None, help="Only show rows with this outcome.")
    @click.option("--reference", default=None, help="Only show rows for this payment reference.")
    @click.option("--limit", default=20, show_default=True, help="Number of rows.")
    def webhook_logs(status, reference, limit):
        """List recent webhook deliveries, newest first.

        Usage:
            flask webhook-logs
            flask webhook-logs --status failed --limit 50
        """
        from wathaci.models.webhook_log import WebhookLog

        query = WebhookLog.query
        if status:
            query = query.filter_by(status=status)
        if reference:
            query = query.filter_by(reference=reference)
        rows = query.order_by(WebhookLog.processed_at.desc()).limit(limit).all()

        if not rows:
            click.echo("No webhook logs found.")
            return

        for row in rows:
            when = row.processed_at.isoformat() if row.processed_at else "-"
            click.echo(
                f"{row.id}  {when}  {row.http_status}  {row.status:<9}  "
                f"{row.event_type:<18}  {row.reference or '-'}"
            )
            if row.error_message:
                click.echo(f"    error: {row.error_message}")

    @app.cli.command("replay-webhook")
    @click.argument("log_id")
    @click.option("--dry-run", is_flag=True, help="Parse and show the event without applying it.")
    def replay_webhook(log_id, dry_run):
        """Re-apply a logged webhook delivery.

        Only deliveries that passed signature verification (processed or
        failed) can be replayed. Updates are overwrites, so replaying an
        already-applied event is harmless. A new webhook_logs row is written
        with source "lenco-replay".

        Usage:
            flask replay-webhook <log-id>
            flask replay-webhook <log-id> --dry-run
        """
        from wathaci.errors import ValidationFailure
        from wathaci.extensions import db as _db
        from wathaci.models.webhook_log import WebhookLog
        from wathaci.services.webhook_parser import parse_webhook_payload
        from wathaci.services.webhook_service import SOURCE_REPLAY, process_verified_body

        entry = _db.session.get(WebhookLog, log_id)
        if entry is None:
            raise click.ClickException(f"No webhook log with id {log_id}")
        if not entry.signature_verified:
            raise click.ClickException(
                f"Webhook log {log_id} was {entry.status} (HTTP {entry.http_status}); "
                "only verified deliveries can be replayed."
            )
        if not entry.raw_body:
            raise click.ClickException(f"Webhook log {log_id} has no stored body.")

        if dry_run:
            try:
                event = parse_webhook_payload(entry.raw_body)
            except ValidationFailure as e:
                raise click.ClickException(f"Stored body does not parse: {e.detail or e.message}")
            click.echo(f"Event:     {event.event_type}")
            click.echo(f"Reference: {event.reference}")
            click.echo(f"Status:    {event.status} -> {event.internal_status}")
            click.echo(f"Purpose:   {event.purpose.kind} {event.purpose.target_id or ''}".rstrip())
            click.echo(f"User:      {event.user_id or '-'}")
            return

        status_code, body = process_verified_body(
            entry.raw_body, source=SOURCE_REPLAY, check_freshness=False
        )
        if status_code != 200:
            raise click.ClickException(
                f"Replay failed with HTTP {status_code}: {body.get('error')}"
            )
        click.echo(f"Replayed webhook log {log_id} (reference {entry.reference}).")
