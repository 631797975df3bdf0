"""Unit tests for domain models."""
from fcexport.domain import (
    DetailFetchResult,
    DetailRecord,
    ItemResult,
    ListEntry,
    SkipReason,
    resolve_sender_name,
)


class TestListEntry:
    """Tests for ListEntry.from_payload."""

    def test_list_entry_id(self):
        entry = ListEntry.from_payload({"notificationReservationId": 42, "title": "x"})
        assert entry.notification_id == "42"

    def test_list_entry_missing_id(self):
        assert ListEntry.from_payload({"title": "x"}).notification_id is None
        assert ListEntry.from_payload("garbage").notification_id is None


class TestDetailRecord:
    """Tests for DetailRecord.from_payload."""

    def test_fields_in_ascending_key_order(self):
        """Test body/image fields are sorted by key, not payload order."""
        record = DetailRecord.from_payload({
            "sendingOfficialUserId": "abc",
            "image2": "img/2.jpg",
            "body2": "<p>two</p>",
            "image1": "img/1.jpg",
            "body1": "<p>one</p>",
        })
        assert [f.key for f in record.body_fields] == ["body1", "body2"]
        assert [f.key for f in record.image_fields] == ["image1", "image2"]

    def test_key_order_is_lexicographic(self):
        """Test keys compare as strings (body10 sorts before body2)."""
        record = DetailRecord.from_payload({
            "body2": "<p>b</p>",
            "body10": "<p>c</p>",
            "body1": "<p>a</p>",
        })
        assert [f.key for f in record.body_fields] == ["body1", "body10", "body2"]

    def test_empty_and_non_string_fields_ignored(self):
        record = DetailRecord.from_payload({
            "body1": "",
            "body2": None,
            "image1": 7,
            "image2": "img/ok.png",
        })
        assert record.body_fields == ()
        assert [f.value for f in record.image_fields] == ["img/ok.png"]

    def test_scalar_fields(self):
        record = DetailRecord.from_payload(
            {
                "sendingOfficialUserId": "a4npPurePgMCD5wEmekQO",
                "releaseDate": 1704412987000,
                "title": "Hello",
            },
            notification_id="9"
        )
        assert record.sender_id == "a4npPurePgMCD5wEmekQO"
        assert record.release_date == 1704412987000
        assert record.title == "Hello"
        assert record.notification_id == "9"

    def test_missing_scalars(self):
        record = DetailRecord.from_payload({"releaseDate": "not a number"})
        assert record.sender_id == ""
        assert record.release_date is None
        assert record.title == ""

    def test_release_date_as_string(self):
        assert DetailRecord.from_payload({"releaseDate": "1000"}).release_date == 1000

    def test_release_date_out_of_range(self):
        """Test dates that cannot be turned into a calendar date are treated as missing."""
        assert DetailRecord.from_payload({"releaseDate": 10 ** 20}).release_date is None
        assert DetailRecord.from_payload({"releaseDate": "inf"}).release_date is None
        assert DetailRecord.from_payload({"releaseDate": "nan"}).release_date is None


class TestItemResult:
    """Tests for ItemResult and DetailFetchResult."""

    def test_success_and_skipped(self):
        ok = ItemResult.success("value", item_id="1")
        skipped = ItemResult.skipped(SkipReason.TIMEOUT, "slow", item_id="2")
        assert ok.ok and ok.value == "value"
        assert not skipped.ok and skipped.reason is SkipReason.TIMEOUT

    def test_skip_counts(self):
        result = DetailFetchResult(skipped=[
            ItemResult.skipped(SkipReason.TIMEOUT),
            ItemResult.skipped(SkipReason.TIMEOUT),
            ItemResult.skipped(SkipReason.HTTP_STATUS),
        ])
        assert result.skip_counts() == {"timeout": 2, "http_status": 1}


class TestSenderNames:
    """Tests for the sender lookup table."""

    def test_known_sender(self):
        assert resolve_sender_name("a4npPurePgMCD5wEmekQO") == "東山恵里沙"

    def test_unknown_sender_falls_back_to_id(self):
        assert resolve_sender_name("unknown-id") == "unknown-id"

    def test_custom_table(self):
        assert resolve_sender_name("x", {"x": "Ex"}) == "Ex"
