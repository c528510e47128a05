"""StatsD metrics of the analysis service."""

import logging
from enum import StrEnum
from functools import cache
from typing import Mapping

import aiodogstatsd

from linkaudit.config import settings
from linkaudit.entries.models import URLStatus

logger = logging.getLogger(__name__)

# Type definition for tags in aiodogstatsd metrics
MetricTags = Mapping[str, float | int | str]


class ProcessorMetric(StrEnum):
    """Metrics emitted by the job processor."""

    CANCEL = "processor.cancel"
    JOB_ABORTED = "processor.job.aborted"
    JOB_FAILED = "processor.job.failed"
    JOB_TIMING = "processor.job.timing"
    QUEUE_PENDING = "queue.pending"

    @staticmethod
    def job_outcome(status: URLStatus) -> str:
        """Counter of the jobs that ended with `status`, e.g. `processor.job.done`."""
        return f"processor.job.{status.value}"


@cache
def get_metrics_client() -> aiodogstatsd.Client:
    """Instantiate and memoize the StatsD client.

    Every metric is tagged with the analysis backend, so that runs against the fake
    backend never mix with production numbers.
    """
    constant_tags: MetricTags = {
        "application": "linkaudit",
        "deployment.canary": int(settings.deployment.canary),
        "analysis.backend": settings.analysis.backend,
    }

    return aiodogstatsd.Client(
        host=settings.metrics.host,
        port=settings.metrics.port,
        namespace="linkaudit",
        constant_tags=constant_tags,
    )


async def configure_metrics() -> None:
    """Connect the metrics client. Used at the startup of the app and of CLI runs."""
    client = get_metrics_client()
    if settings.metrics.dev_logger:
        client._protocol = _DatagramLogger()
    await client.connect()


async def shutdown_metrics() -> None:
    """Flush and close the metrics client.

    The memoized client is dropped as well: it is bound to the event loop that
    connected it, and the CLI runs every command in a loop of its own.
    """
    await get_metrics_client().close()
    get_metrics_client.cache_clear()


class _DatagramLogger(aiodogstatsd.client.DatagramProtocol):
    """Log StatsD datagrams as structured records instead of sending them."""

    def send(self, data: bytes) -> None:
        for line in data.decode("utf8").splitlines():
            # <name>:<value>|<type>[|@<rate>][|#<tags>]
            name, _, rest = line.partition(":")
            value, _, kind = rest.partition("|")
            logger.debug(
                "sending metrics",
                extra={"metric": name, "value": value, "type": kind.split("|")[0]},
            )

    def error_received(self, exc) -> None:
        logger.exception(exc)
