import asyncio

from deindexer.workflows.deletion import DeletionReport, reconcile_deletions


class FakeRemovalClient:
    def __init__(self, metadata):
        self.metadata = metadata
        self.events = []
        self.deleted = []

    async def get_publish_metadata(self, url):
        self.events.append(("metadata", url))
        return self.metadata[url]

    async def request_deleting(self, url):
        self.events.append(("delete", url))
        self.deleted.append(url)
        return True


def test_missing_page_gets_one_removal_request():
    client = FakeRemovalClient({"https://a.com/x": 404})
    report = asyncio.run(reconcile_deletions(client, ["https://a.com/x"]))

    assert client.deleted == ["https://a.com/x"]
    assert report.requested == ["https://a.com/x"]
    assert report.already_requested == []


def test_existing_notification_is_not_requested_again():
    client = FakeRemovalClient({"https://a.com/y": 200})
    report = asyncio.run(reconcile_deletions(client, ["https://a.com/y"]))

    assert client.deleted == []
    assert report.already_requested == ["https://a.com/y"]
    assert report.requested == []


def test_server_error_leaves_url_untouched():
    client = FakeRemovalClient({"https://a.com/z": 500, "https://a.com/w": 429})
    report = asyncio.run(reconcile_deletions(client, ["https://a.com/z", "https://a.com/w"]))

    assert client.deleted == []
    assert report.requested == []
    assert report.already_requested == []
    assert report.not_eligible == {"https://a.com/z": 500, "https://a.com/w": 429}


def test_urls_processed_sequentially_in_order():
    metadata = {"https://a.com/1": 404, "https://a.com/2": 200, "https://a.com/3": 404}
    client = FakeRemovalClient(metadata)
    asyncio.run(reconcile_deletions(client, list(metadata)))

    assert client.events == [
        ("metadata", "https://a.com/1"),
        ("delete", "https://a.com/1"),
        ("metadata", "https://a.com/2"),
        ("metadata", "https://a.com/3"),
        ("delete", "https://a.com/3"),
    ]


def test_report_to_dict():
    report = DeletionReport(requested=["a"], already_requested=["b"], not_eligible={"c": 503})
    assert report.to_dict() == {"requested": ["a"], "already_requested": ["b"], "not_eligible": {"c": 503}}


def test_unreachable_metadata_is_not_eligible():
    client = FakeRemovalClient({"https://a.com/boom": -1, "https://a.com/x": 404})
    report = asyncio.run(reconcile_deletions(client, ["https://a.com/boom", "https://a.com/x"]))

    assert report.not_eligible == {"https://a.com/boom": -1}
    assert report.already_requested == []
    assert client.deleted == ["https://a.com/x"]
