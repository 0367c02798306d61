import json

import monday_relay.handler as h
from monday_relay.errors import UpstreamError


def _event(item_id=5, board_id=10, column_id="files"):
    body = {"payload": {"inputFields": {"itemId": item_id, "boardId": board_id, "columnId": column_id}}}
    return {
        "rawPath": "/file-handler",
        "requestContext": {"http": {"method": "POST"}},
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
        "isBase64Encoded": False,
    }


def _item(*names, name="Deal"):
    return {
        "name": name,
        "assets": [],
        "updates": [
            {"assets": [{"name": n, "public_url": f"https://cdn.example/{n}"} for n in names]}
        ],
        "column_values": [],
    }


def test_two_update_pdfs_split_across_items(monkeypatch, fake_monday, sleeps):
    monkeypatch.setenv("MONDAY_API_KEY", "x")
    fake_monday.item = _item("Invoice.pdf", "Receipt.pdf")
    fake_monday.name = "Deal"

    res = h.lambda_handler(_event(), None)
    body = json.loads(res["body"])

    assert res["statusCode"] == 200
    assert fake_monday.renamed == [("10", "5", "Deal [1of2]")]
    assert fake_monday.created == [("10", "Deal [2of2]")]
    assert fake_monday.uploads == [
        ("5", "files", "Invoice [1of2].pdf"),
        ("9000", "files", "Receipt [2of2].pdf"),
    ]
    assert body["totalPDFs"] == 2
    assert body["processedPDFs"] == ["Invoice.pdf", "Receipt.pdf"]
    assert body["failedPDFs"] == []
    assert body["ignoredFiles"] == 0
    assert body["message"] == (
        "Processed 2 PDF files. Original item updated with [1of2] suffix, 1 new items created."
    )
    # rename pause, between-PDF pause, create pause
    assert sleeps == [1.0, 2.0, 1.0]


def test_n_pdfs_create_n_minus_one_items(monkeypatch, fake_monday):
    monkeypatch.setenv("MONDAY_API_KEY", "x")
    fake_monday.item = _item("a.pdf", "b.pdf", "c.pdf", "d.pdf")
    fake_monday.name = "Order"

    res = h.lambda_handler(_event(), None)
    assert res["statusCode"] == 200
    assert fake_monday.renamed == [("10", "5", "Order [1of4]")]
    assert [n for _b, n in fake_monday.created] == ["Order [2of4]", "Order [3of4]", "Order [4of4]"]
    assert [f for _i, _c, f in fake_monday.uploads] == [
        "a [1of4].pdf",
        "b [2of4].pdf",
        "c [3of4].pdf",
        "d [4of4].pdf",
    ]
    # fresh name lookup before every rename/create
    assert fake_monday.name_queries == 4


def test_rename_skipped_when_suffix_present(monkeypatch, fake_monday):
    monkeypatch.setenv("MONDAY_API_KEY", "x")
    fake_monday.item = _item("Invoice.pdf", "Receipt.pdf", name="Deal [1of2]")
    fake_monday.name = "Deal [1of2]"

    res = h.lambda_handler(_event(), None)
    body = json.loads(res["body"])
    assert res["statusCode"] == 200
    assert fake_monday.renamed == []
    assert fake_monday.created == [("10", "Deal [2of2]")]
    assert body["message"] == "Processed 2 PDF files. 1 new items created."


def test_failed_rename_is_not_reported_as_done(monkeypatch, fake_monday):
    monkeypatch.setenv("MONDAY_API_KEY", "x")
    fake_monday.item = _item("Invoice.pdf", "Receipt.pdf")
    fake_monday.name = "Deal"
    fake_monday.rename_error = UpstreamError("rename item failed: HTTP 500")

    body = json.loads(h.lambda_handler(_event(), None)["body"])
    assert "Original item updated" not in body["message"]
    assert body["message"].endswith("1 of 2 failed.")
    assert body["failedPDFs"] == [{"name": "Invoice.pdf", "error": "rename item failed: HTTP 500"}]
    assert fake_monday.uploads == [("9000", "files", "Receipt [2of2].pdf")]


def test_padded_pdf_name_gets_suffix_before_extension(monkeypatch, fake_monday):
    monkeypatch.setenv("MONDAY_API_KEY", "x")
    fake_monday.item = _item("Invoice.pdf ", "Receipt.pdf")
    fake_monday.name = "Deal"

    h.lambda_handler(_event(), None)
    assert [f for _i, _c, f in fake_monday.uploads] == [
        "Invoice [1of2].pdf",
        "Receipt [2of2].pdf",
    ]


def test_duplicate_assets_counted_once(monkeypatch, fake_monday):
    monkeypatch.setenv("MONDAY_API_KEY", "x")
    item = _item("Invoice.pdf")
    item["assets"] = [{"name": "Invoice.pdf", "public_url": "https://cdn.example/Invoice.pdf"}]
    fake_monday.item = item

    body = json.loads(h.lambda_handler(_event(), None)["body"])
    assert body["totalPDFs"] == 1
    assert body["allFilesFound"] == ["Invoice.pdf"]
    assert fake_monday.uploads == [("5", "files", "Invoice.pdf")]


def test_download_fails_twice_then_succeeds(monkeypatch, fake_monday, sleeps):
    monkeypatch.setenv("MONDAY_API_KEY", "x")
    fake_monday.item = _item("Invoice.pdf")
    fake_monday.download_failures["https://cdn.example/Invoice.pdf"] = 2

    body = json.loads(h.lambda_handler(_event(), None)["body"])
    assert body["processedPDFs"] == ["Invoice.pdf"]
    assert len(fake_monday.downloads) == 3
    assert sleeps == [2.0, 2.0]


def test_upload_exhausted_fails_only_that_pdf(monkeypatch, fake_monday, sleeps):
    monkeypatch.setenv("MONDAY_API_KEY", "x")
    fake_monday.item = _item("Invoice.pdf", "Receipt.pdf")
    fake_monday.name = "Deal"
    fake_monday.upload_failures["Invoice [1of2].pdf"] = 5

    res = h.lambda_handler(_event(), None)
    body = json.loads(res["body"])

    assert res["statusCode"] == 200
    assert body["processedPDFs"] == ["Receipt.pdf"]
    assert body["failedPDFs"] == [{"name": "Invoice.pdf", "error": "upload failed: HTTP 502"}]
    assert body["message"].endswith("1 of 2 failed.")
    assert fake_monday.uploads == [("9000", "files", "Receipt [2of2].pdf")]
    assert fake_monday.upload_failures["Invoice [1of2].pdf"] == 2
    # rename, 2 upload retries, between-PDF, create
    assert sleeps == [1.0, 3.0, 3.0, 2.0, 1.0]
    assert body["results"][0]["status"] == "failed"
    assert body["results"][1] == {
        "pdf": "Receipt.pdf",
        "filename": "Receipt [2of2].pdf",
        "targetItemId": "9000",
        "status": "uploaded",
    }
