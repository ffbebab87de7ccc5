"""One-shot delayed continuations backed by an Azure Storage queue."""

from __future__ import annotations

import contextlib
import logging
import math
from typing import TYPE_CHECKING

from azure.core.exceptions import ResourceExistsError
from azure.storage.queue import QueueClient, TextBase64EncodePolicy

if TYPE_CHECKING:
    from drive_indexer.config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_CONTINUATION_QUEUE = "drive-indexer-continuation"
# Body is ignored; the continuation trigger reads the checkpoint.
CONTINUATION_MESSAGE = "continue"


class QueueScheduler:
    """Schedules "run the entry point once, after N milliseconds".

    A continuation is a queue message sent with a visibility timeout equal
    to the delay; the queue-triggered function picks it up once it becomes
    visible. Canceling clears every message in the queue.
    """

    def __init__(
        self,
        storage_connection_string: str,
        queue_name: str = DEFAULT_CONTINUATION_QUEUE,
    ) -> None:
        """Initialise the scheduler.

        Args:
            storage_connection_string: Azure Storage connection string.
            queue_name: Queue bound to the continuation trigger.
        """
        # The Functions queue trigger expects base64-encoded message bodies.
        self._queue = QueueClient.from_connection_string(
            storage_connection_string,
            queue_name,
            message_encode_policy=TextBase64EncodePolicy(),
        )
        self._queue_name = queue_name

    def schedule(self, delay_ms: int) -> None:
        """Register one continuation that becomes visible after ``delay_ms``.

        Sub-second delays are rounded up to whole seconds, the queue's
        visibility granularity.
        """
        with contextlib.suppress(ResourceExistsError):
            self._queue.create_queue()

        visibility_timeout = max(0, math.ceil(delay_ms / 1000))
        self._queue.send_message(
            CONTINUATION_MESSAGE,
            visibility_timeout=visibility_timeout,
        )
        logger.info(
            "[schedule] continuation scheduled; queue:%s;delay_seconds:%d",
            self._queue_name,
            visibility_timeout,
        )

    def cancel_all(self) -> None:
        """Drop every pending continuation."""
        with contextlib.suppress(ResourceExistsError):
            self._queue.create_queue()
        self._queue.clear_messages()
        logger.info("[cancel_all] pending continuations cleared; queue:%s", self._queue_name)


def queue_scheduler_from_config(config: AppConfig) -> QueueScheduler:
    """Construct a QueueScheduler from application configuration."""
    return QueueScheduler(
        storage_connection_string=config.storage_connection_string,
        queue_name=DEFAULT_CONTINUATION_QUEUE,
    )
