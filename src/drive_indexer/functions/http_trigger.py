"""HTTP trigger blueprint — health check, manual run and checkpoint diagnostics."""

import json
import logging

import azure.functions as func

from drive_indexer import __version__
from drive_indexer.config import load_config
from drive_indexer.orchestration.indexer import TickInProgressError, drive_indexer_from_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()


def _error_response() -> func.HttpResponse:
    error_body = json.dumps({"status": "error", "message": "Internal server error"})
    return func.HttpResponse(error_body, status_code=500, mimetype="application/json")


@bp.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint.

    Returns service status and version.
    """
    logger.info("[health_check] health check requested")

    try:
        body = json.dumps({"status": "ok", "version": __version__})
        return func.HttpResponse(body, status_code=200, mimetype="application/json")

    except Exception:
        logger.error("[health_check] health check failed", exc_info=True)
        return _error_response()


@bp.route(route="index", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def manual_trigger(req: func.HttpRequest) -> func.HttpResponse:
    """Manual trigger endpoint — starts a new index or resumes the current one.

    Requires a function key for authentication. Runs one tick and returns
    the tick report, or 409 while another tick is running.
    """
    logger.info("[manual_trigger] manual trigger requested")

    try:
        config = load_config()
        indexer = drive_indexer_from_config(config)
        report = indexer.run()
        logger.info(
            "[manual_trigger] tick finished; action:%s;rows_written:%d;queued:%d",
            report.action.value,
            report.rows_written,
            report.queued,
        )

        body = json.dumps({"status": "ok", **report.to_dict()})
        return func.HttpResponse(body, status_code=200, mimetype="application/json")

    except TickInProgressError:
        logger.warning("[manual_trigger] rejected, another tick is running")
        body = json.dumps({"status": "busy", "message": "Another tick is running"})
        return func.HttpResponse(body, status_code=409, mimetype="application/json")

    except Exception:
        logger.error("[manual_trigger] manual trigger failed", exc_info=True)
        return _error_response()


@bp.route(route="index/state", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def show_state(req: func.HttpRequest) -> func.HttpResponse:
    """Return the raw checkpoint contents without changing them."""
    logger.info("[show_state] checkpoint dump requested")

    try:
        config = load_config()
        state = drive_indexer_from_config(config).dump_state()
        body = json.dumps({"status": "ok", "checkpoint": state})
        return func.HttpResponse(body, status_code=200, mimetype="application/json")

    except Exception:
        logger.error("[show_state] checkpoint dump failed", exc_info=True)
        return _error_response()


@bp.route(route="index/state/clear", methods=["POST"], auth_level=func.AuthLevel.ADMIN)
def clear_state(req: func.HttpRequest) -> func.HttpResponse:
    """Delete all checkpoint keys and pending continuations.

    Operator escape hatch for abandoning a run; not used by the normal flow.
    """
    logger.warning("[clear_state] checkpoint clear requested")

    try:
        config = load_config()
        drive_indexer_from_config(config).clear_state()
        body = json.dumps({"status": "ok"})
        return func.HttpResponse(body, status_code=200, mimetype="application/json")

    except Exception:
        logger.error("[clear_state] checkpoint clear failed", exc_info=True)
        return _error_response()
