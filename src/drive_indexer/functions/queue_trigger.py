"""Queue trigger blueprint — continuation entry point for the drive index."""

import logging

import azure.functions as func

from drive_indexer.config import load_config
from drive_indexer.orchestration.indexer import TickInProgressError, drive_indexer_from_config
from drive_indexer.state.scheduler import DEFAULT_CONTINUATION_QUEUE

logger = logging.getLogger(__name__)

bp = func.Blueprint()


@bp.queue_trigger(
    arg_name="msg",
    queue_name=DEFAULT_CONTINUATION_QUEUE,
    connection="AzureWebJobsStorage",
)
def index_continuation(msg: func.QueueMessage) -> None:
    """Run the next tick of an in-progress index.

    Fired by the message the previous tick scheduled. Never starts a new
    run. If another tick holds the lock, a continuation is deferred past
    it. Failures are logged and re-raised so the host retries the message
    against the last good checkpoint.
    """
    logger.info("Continuation trigger fired (dequeue_count=%s)", msg.dequeue_count)

    try:
        config = load_config()
        indexer = drive_indexer_from_config(config)
        report = indexer.run(resume_only=True)
        logger.info(
            "Index tick finished — %s, %d row(s) written, %d folder(s) queued",
            report.action.value,
            report.rows_written,
            report.queued,
        )

    except TickInProgressError:
        logger.info("Another tick is running, continuation deferred")
        indexer.defer()

    except Exception:
        logger.exception("Continuation trigger failed")
        raise
