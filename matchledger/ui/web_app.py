"""
Web application module for the match ledger engine.

This module contains the Flask server exposing the engine as JSON API
endpoints: match summaries, integrity validation, recovery of corrupted logs,
crash recovery from storage and plan progress reconciliation.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, jsonify, request

from ..models import PlanProgress
from ..services import (
    FileStorage, ServiceFactory, StorageError, StoragePort,
    recover_corrupted_events, reconcile_plan_progress, validate_match_data
)
from ..utils import APP_TITLE, Clock
from ..utils.constants import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_STORAGE_DIR

logger = logging.getLogger(__name__)


class WebAppState:
    """
    State holder for one application instance.

    Services are created through the factory over a single storage port.
    """

    def __init__(self, storage: Optional[StoragePort] = None, clock: Optional[Clock] = None):
        self.service_factory = ServiceFactory(storage=storage, clock=clock)
        services = self.service_factory.create_complete_service_suite()
        self.summary_service = services['summary']
        self.recovery_service = services['recovery']
        self.plan_progress_service = services['plan_progress']

    @property
    def clock(self) -> Clock:
        return self.service_factory.clock


def _json_body() -> Tuple[Optional[Dict[str, Any]], Optional[Tuple[Response, int]]]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None, (jsonify({"success": False, "error": "Request body must be a JSON object"}), 400)
    return data, None


def create_app(storage: Optional[StoragePort] = None, clock: Optional[Clock] = None) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        storage: Storage port for persisted logs and cached plan progress
        clock: Clock injected into every service

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app_state = WebAppState(storage=storage, clock=clock)
    app.extensions["matchledger"] = app_state

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"success": True, "app": APP_TITLE, "timestamp": app_state.clock()})

    # ==================== Match event log ==================== #

    @app.route("/api/match/summary", methods=["POST"])
    def match_summary():
        """Summarize an event log; ``?format=csv`` returns the CSV export."""
        data, error = _json_body()
        if error:
            return error

        events = data.get("events")
        prior_state = data.get("priorState")
        if request.args.get("format") == "csv":
            csv_text = app_state.summary_service.export_summary_csv(events, prior_state)
            return Response(
                csv_text,
                mimetype="text/csv",
                headers={"Content-Disposition": "attachment; filename=match_summary.csv"},
            )

        summary = app_state.summary_service.generate_summary(events, prior_state)
        return jsonify({
            "success": True,
            "summary": app_state.summary_service.summary_to_dict(summary),
        })

    @app.route("/api/match/validate", methods=["POST"])
    def validate_events():
        data, error = _json_body()
        if error:
            return error

        issues = validate_match_data(data.get("events"), prior_state=data.get("priorState"),
                                     clock=app_state.clock)
        return jsonify({
            "success": True,
            "valid": not issues,
            "issues": [issue.to_dict() for issue in issues],
        })

    @app.route("/api/match/recover", methods=["POST"])
    def recover_events():
        data, error = _json_body()
        if error:
            return error

        events = data.get("events")
        recovered = recover_corrupted_events(events)
        original_count = len(events) if isinstance(events, list) else 0
        return jsonify({
            "success": True,
            "events": recovered,
            "dropped": max(0, original_count - len(recovered)),
        })

    @app.route("/api/match/restore", methods=["POST"])
    def restore_events():
        """Validate and restore a persisted blob passed as a JSON string in ``raw``."""
        data, error = _json_body()
        if error:
            return error

        restored = app_state.recovery_service.restore(data.get("raw"))
        if restored is None:
            return jsonify({"success": False, "error": "No usable match data"}), 422
        return jsonify({"success": True, "data": restored})

    @app.route("/api/match/crash-recovery", methods=["GET"])
    def crash_recovery():
        restored = app_state.recovery_service.recover()
        if restored is None:
            return jsonify({"success": False, "error": "No valid storage found"}), 404
        return jsonify({"success": True, "data": restored})

    @app.route("/api/match/events", methods=["POST"])
    def save_events():
        """Persist the live log to the primary and backup keys."""
        data, error = _json_body()
        if error:
            return error

        events = data.get("events")
        if not isinstance(events, list):
            return jsonify({"success": False, "error": "events must be an array"}), 400

        extra = {key: value for key, value in data.items() if key != "events"}
        try:
            blob = app_state.recovery_service.save_events(events, **extra)
        except StorageError as exc:
            logger.error("Failed to persist match events: %s", exc)
            return jsonify({"success": False, "error": str(exc)}), 500
        return jsonify({"success": True, "lastUpdated": blob["lastUpdated"], "count": len(events)})

    # ==================== Plan progress ==================== #

    @app.route("/api/plan-progress/reconcile", methods=["POST"])
    def reconcile_progress():
        """
        Reconcile plan progress.

        With a ``planProgress`` object in the body the reconciliation is pure;
        without one the cached state in storage is reconciled and saved.
        """
        data, error = _json_body()
        if error:
            return error

        team_id = data.get("teamId")
        matches = data.get("matchesToPlan")
        if "planProgress" in data:
            progress: PlanProgress = reconcile_plan_progress(team_id, matches, data.get("planProgress"))
        else:
            progress = app_state.plan_progress_service.sync(team_id, matches)
        return jsonify({"success": True, "planProgress": progress.to_dict()})

    return app


def run_web_app(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                storage_dir: str = DEFAULT_STORAGE_DIR) -> None:
    """
    Run the web application.

    Args:
        host: Host address to bind to (default: localhost only)
        port: Port number to listen on
        storage_dir: Directory holding persisted blobs
    """
    app = create_app(storage=FileStorage(storage_dir))
    logger.info("Starting %s on %s:%s (storage: %s)", APP_TITLE, host, port, storage_dir)
    app.run(host=host, port=port, debug=False)
