# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Module for test configurations for the processing unit tests."""

from typing import Any

import pytest

from linkaudit.entries.storage.none import NoStorage
from linkaudit.entries.store import EntryStore
from linkaudit.processing.service import QueueService
from tests.conftest import ControlledAnalysisClient


@pytest.fixture(name="store")
def fixture_store() -> EntryStore:
    """Return an in-memory entry store."""
    return EntryStore(NoStorage())


@pytest.fixture(name="service")
def fixture_service(
    store: EntryStore, analysis_client: ControlledAnalysisClient, metrics_client: Any
) -> QueueService:
    """Return a queue service without inter-job delay."""
    return QueueService(
        store=store,
        client=analysis_client,
        metrics_client=metrics_client,
        inter_job_delay=0.0,
        poll_interval=0.01,
    )
