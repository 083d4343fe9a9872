# error_logger.py
"""
Unhandled-exception capture for the office app.

    from error_logger import init_error_logging
    init_error_logging(app)

Every crash is recorded in the rotating log file (ERROR_LOG_FILE, default
errors.log) and in the error_logs collection of the main database.
"""

import logging
import os
import traceback
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from flask import request, jsonify, render_template_string
from pymongo.errors import PyMongoError

import records

ERROR_COLLECTION = "error_logs"

ERROR_PAGE = """
<h1>500 - Internal Server Error</h1>
<p>Something went wrong. The incident has been recorded (ID: {{ incident_id }}).</p>
<p><a href="javascript:window.history.back()">Go back</a> or <a href="/dashboard">return to the dashboard</a>.</p>
"""

logger = logging.getLogger("error_logger")


# --------------------------------------------------------------------------- #
# Internal helpers
# --------------------------------------------------------------------------- #
def _request_details():
    form = {k: v for k, v in request.form.to_dict().items() if "password" not in k}
    return {
        "method": request.method,
        "url": request.url,
        "path": request.path,
        "endpoint": request.endpoint,
        "remote_addr": request.remote_addr,
        "user_agent": request.headers.get("User-Agent", ""),
        "form": form,
        "json": request.get_json(silent=True) or {},
    }


def _log_to_file(exc_info, details):
    """Write a formatted traceback to the rotating log file."""
    logger.error(
        "=== UNHANDLED EXCEPTION ===\n"
        "URL: %s %s\n"
        "Remote: %s\n"
        "User-Agent: %s\n"
        "Form: %s\n"
        "Traceback:\n%s",
        details["method"],
        details["url"],
        details["remote_addr"],
        details["user_agent"],
        details["form"],
        "".join(traceback.format_exception(*exc_info)),
    )


def _log_to_mongo(exc_info, details):
    """Persist the same data in MongoDB for later analysis."""
    client = records.get_mongo_client()
    try:
        error_doc = dict(details)
        error_doc["timestamp"] = datetime.now(timezone.utc)
        error_doc["traceback"] = traceback.format_exception(*exc_info)
        records.get_database(client)[ERROR_COLLECTION].insert_one(error_doc)
    except PyMongoError as mongo_err:
        logger.warning("Failed to write error to MongoDB: %s", mongo_err)
    finally:
        client.close()


def _wants_json():
    return request.path.startswith("/api/") or request.headers.get("Accept") == "application/json"


# --------------------------------------------------------------------------- #
# Flask error-handler registration
# --------------------------------------------------------------------------- #
def init_error_logging(flask_app):
    """Call this once with the Flask `app` object."""
    log_file = os.getenv("ERROR_LOG_FILE", "errors.log")

    # ---- 1. File logger (daily rotation, keep 30 days) ----
    if not any(isinstance(h, TimedRotatingFileHandler) for h in logger.handlers):
        file_handler = TimedRotatingFileHandler(log_file, when="midnight", backupCount=30, delay=True)
        file_handler.setLevel(logging.ERROR)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
        )
        logger.setLevel(logging.WARNING)
        logger.addHandler(file_handler)

    # ---- 2. Catch-all handler ----
    @flask_app.errorhandler(Exception)
    def handle_uncaught_exception(error):
        # HTTP errors (404, 405 ...) keep their own response
        if hasattr(error, "get_response") and getattr(error, "code", 500) < 500:
            if _wants_json():
                return jsonify({"error": error.name}), error.code
            return error

        exc_info = (type(error), error, error.__traceback__)
        details = _request_details()
        _log_to_file(exc_info, details)
        _log_to_mongo(exc_info, details)

        timestamp = datetime.now(timezone.utc)
        if _wants_json():
            return (
                jsonify(
                    {
                        "error": "Internal Server Error",
                        "message": "An unexpected error occurred. It has been logged.",
                        "timestamp": timestamp.isoformat(),
                    }
                ),
                500,
            )
        return render_template_string(ERROR_PAGE, incident_id=timestamp.strftime('%Y%m%d%H%M%S')), 500

    # ---- 3. Explicit 404 (JSON for APIs) ----
    @flask_app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api/"):
            return jsonify({"error": "Not Found"}), 404
        return e.get_response(), 404

    flask_app.logger.info("Error-logging middleware initialised (file + MongoDB).")
