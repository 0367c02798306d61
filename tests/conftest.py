import time

import pytest

import monday_relay.handler as h
from monday_relay.errors import UpstreamError

ENV_VARS = (
    "MONDAY_API_KEY",
    "MONDAY_SECRET_NAME",
    "MONDAY_API_URL",
    "MONDAY_FILE_URL",
    "MONDAY_API_VERSION",
    "WEBHOOK_SHARED_SECRET",
    "TRANSFER_MAX_ATTEMPTS",
    "DOWNLOAD_RETRY_DELAY_SECONDS",
    "UPLOAD_RETRY_DELAY_SECONDS",
    "MUTATION_DELAY_SECONDS",
    "BETWEEN_PDF_DELAY_SECONDS",
    "PORT",
)


class FakeMonday:
    """In-memory stand-in for MondayClient that records every call."""

    def __init__(self, item=None):
        self.item = item
        self.name = (item or {}).get("name")
        self.instances = 0
        self.name_queries = 0
        self.renamed = []
        self.created = []
        self.downloads = []
        self.uploads = []
        # url / filename -> number of failures before success
        self.download_failures = {}
        self.upload_failures = {}
        self.item_error = None
        self.rename_error = None

    def get_item(self, item_id):
        if self.item_error:
            raise self.item_error
        return self.item

    def get_item_name(self, item_id):
        self.name_queries += 1
        return self.name

    def rename_item(self, board_id, item_id, name):
        if self.rename_error:
            raise self.rename_error
        self.renamed.append((board_id, item_id, name))
        self.name = name

    def create_item(self, board_id, item_name):
        new_id = str(9000 + len(self.created))
        self.created.append((board_id, item_name))
        return new_id

    def download(self, url):
        self.downloads.append(url)
        if self.download_failures.get(url, 0) > 0:
            self.download_failures[url] -= 1
            raise UpstreamError("download failed: timed out")
        return b"%PDF-1.4 " + url.encode("utf-8")

    def add_file_to_column(self, item_id, column_id, filename, content):
        if self.upload_failures.get(filename, 0) > 0:
            self.upload_failures[filename] -= 1
            raise UpstreamError("upload failed: HTTP 502")
        self.uploads.append((item_id, column_id, filename))
        return {"id": "1"}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def sleeps(monkeypatch):
    """Record throttle/retry pauses instead of waiting."""
    recorded = []
    monkeypatch.setattr(time, "sleep", lambda s: recorded.append(s))
    return recorded


@pytest.fixture
def fake_monday(monkeypatch):
    fake = FakeMonday()

    def factory(*_a, **_k):
        fake.instances += 1
        return fake

    monkeypatch.setitem(h.__dict__, "MondayClient", factory)
    return fake
