"""
Fixtures shared by the promoter unit tests.
"""

import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_promoter.app.adapters.artifact_store import ArtifactStore
from service_promoter.app.adapters.res_client import ResApiClient
from service_promoter.app.domain.endpoint import ServerEndpoint
from service_promoter.app.promotion.promoter import Promoter
from shared.test_helpers import FakeResServer, test_data_factory

SOURCE_ENDPOINT = ServerEndpoint(host="res-source", port="9081", user="resAdmin", password="resAdmin")
DESTINATION_ENDPOINT = ServerEndpoint(host="res-destination", port="9080", user="rtsAdmin", password="rtsAdmin")


class RecordingSink:
    """Diagnostic sink that keeps every event."""

    def __init__(self):
        self.events = []

    def info(self, event, **kw):
        self.events.append(("info", event, kw))

    def warning(self, event, **kw):
        self.events.append(("warning", event, kw))

    def error(self, event, **kw):
        self.events.append(("error", event, kw))

    def messages(self, level=None):
        return [event for lvl, event, _ in self.events if level is None or lvl == level]


def build_promoter(source: FakeResServer, destination: FakeResServer, stage_dir, **kwargs) -> Promoter:
    logger = kwargs.get("logger")
    store = ArtifactStore(stage_dir, logger=logger)
    return Promoter(
        ResApiClient(SOURCE_ENDPOINT, transport=source.transport(), store=store, logger=logger),
        ResApiClient(DESTINATION_ENDPOINT, transport=destination.transport(), store=store, logger=logger),
        store,
        **kwargs
    )


@pytest.fixture
def stage_dir(tmp_path):
    """Empty staging directory."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def source():
    return test_data_factory.loan_source()


@pytest.fixture
def destination(source):
    return test_data_factory.empty_destination(source)


@pytest.fixture
def sink():
    return RecordingSink()
