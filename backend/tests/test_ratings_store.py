import base64
import json
from dataclasses import replace

import pytest

from backend.app.errors import ConfigurationError, StorageError, ValidationError
from backend.app.models import RatingRecord
from backend.app.services.ratings_store import RatingsStore, decode_cursor, encode_cursor


def seed_channel(add_rating, channel_id, count):
    return [
        add_rating(channel_id, f"2024-01-{day:02d}T00:00:00.000000Z", (day % 5) + 1)
        for day in range(1, count + 1)
    ]


def test_put_and_query_round_trip(store):
    record = RatingRecord(
        channel_id="UC_A",
        submitted_at="2024-02-01T00:00:00.000000Z",
        score=4,
        comment="nice",
        email="fan@gmail.com",
        ip="1.2.3.4",
        channel_title="Creator A",
        profile_picture={"default": "https://img/a.jpg", "high": "https://img/a-high.jpg"},
    )
    store.put(record)

    page = store.query_by_creator("UC_A")
    assert page.records == [record]
    assert page.next_cursor is None


def test_query_returns_newest_first(store, add_rating):
    seed_channel(add_rating, "UC_A", 3)
    add_rating("UC_B", "2024-01-09T00:00:00.000000Z", 1)

    stamps = [r.submitted_at for r in store.query_by_creator("UC_A").records]
    assert stamps == sorted(stamps, reverse=True)
    assert len(stamps) == 3


def test_query_filters_on_attribute_equality(store, add_rating):
    add_rating("UC_A", "2024-01-01T00:00:00.000000Z", 5, email="a@gmail.com", ip="1.1.1.1")
    add_rating("UC_A", "2024-01-02T00:00:00.000000Z", 4, email="b@gmail.com", ip="1.1.1.1")
    add_rating("UC_A", "2024-01-03T00:00:00.000000Z", 3, email="c@gmail.com", ip="2.2.2.2")

    assert len(store.query_all_by_creator("UC_A", filters={"email": "b@gmail.com"})) == 1
    assert len(store.query_all_by_creator("UC_A", filters={"ip": "1.1.1.1"})) == 2
    assert store.query_all_by_creator("UC_A", filters={"ip": "3.3.3.3"}) == []


def test_query_pagination_neither_repeats_nor_skips(store, add_rating):
    seeded = seed_channel(add_rating, "UC_A", 5)

    seen = []
    cursor = None
    pages = 0
    while True:
        page = store.query_by_creator("UC_A", limit=2, cursor=cursor)
        seen.extend(r.submitted_at for r in page.records)
        pages += 1
        if not page.next_cursor:
            break
        cursor = page.next_cursor

    assert pages >= 3
    assert len(seen) == len(set(seen)) == 5
    assert sorted(seen) == sorted(r.submitted_at for r in seeded)


def test_scan_pagination_neither_repeats_nor_skips(store, add_rating):
    seed_channel(add_rating, "UC_A", 3)
    seed_channel(add_rating, "UC_B", 4)

    seen = []
    cursor = None
    while True:
        page = store.scan_page(cursor=cursor, limit=3)
        seen.extend((r.channel_id, r.submitted_at) for r in page.records)
        if not page.next_cursor:
            break
        cursor = page.next_cursor

    assert len(seen) == len(set(seen)) == 7


def test_query_all_follows_every_page(store, add_rating, monkeypatch):
    seed_channel(add_rating, "UC_A", 5)
    original = store.query_by_creator

    def small_pages(channel_id, limit=None, cursor=None, filters=None, newest_first=True):
        return original(channel_id, limit=2, cursor=cursor, filters=filters, newest_first=newest_first)

    monkeypatch.setattr(store, "query_by_creator", small_pages)
    assert len(store.query_all_by_creator("UC_A")) == 5


def test_cursor_is_base64_json_of_the_native_key():
    key = {"channelId": {"S": "UC_A"}, "timestamp": {"S": "2024-01-01T00:00:00.000000Z"}}
    cursor = encode_cursor(key)
    assert json.loads(base64.b64decode(cursor)) == key
    assert decode_cursor(cursor) == key
    assert encode_cursor(None) is None
    assert decode_cursor("") is None


@pytest.mark.parametrize(
    "cursor",
    ["not base64!", base64.b64encode(b"not json").decode(), base64.b64encode(b"[1, 2]").decode()],
)
def test_malformed_cursor_is_a_validation_error(store, cursor):
    with pytest.raises(ValidationError):
        store.query_by_creator("UC_A", cursor=cursor)


def test_client_errors_become_storage_errors(dynamodb_client):
    missing = RatingsStore(dynamodb_client, "no-such-table")
    with pytest.raises(StorageError) as exc_info:
        missing.query_by_creator("UC_A")
    assert exc_info.value.operation == "query"
    assert exc_info.value.context["channel_id"] == "UC_A"
    assert exc_info.value.to_body() == {"error": "Database error"}

    with pytest.raises(StorageError):
        missing.scan_page()
    with pytest.raises(StorageError):
        missing.put(RatingRecord(channel_id="UC_A", submitted_at="2024-01-01T00:00:00Z", score=3))


def test_from_settings_requires_table_name(settings, aws_credentials):
    with pytest.raises(ConfigurationError):
        RatingsStore.from_settings(replace(settings, ratings_table_name=""))


def put_raw(store, item):
    store.client.put_item(TableName=store.table_name, Item=item)


def test_thumbnail_shaped_picture_is_read_as_urls(store):
    put_raw(
        store,
        {
            "channelId": {"S": "UC_A"},
            "timestamp": {"S": "2024-01-01T00:00:00.000Z"},
            "rating": {"N": "1"},
            "profilePicture": {
                "M": {
                    "default": {"M": {"url": {"S": "https://img/a.jpg"}, "width": {"N": "88"}}},
                    "high": {"M": {"url": {"S": "https://img/a-high.jpg"}, "width": {"N": "800"}}},
                }
            },
        },
    )

    records = store.query_all_by_creator("UC_A")

    assert len(records) == 1
    assert records[0].score == 1
    assert records[0].profile_picture == {"default": "https://img/a.jpg", "high": "https://img/a-high.jpg"}


@pytest.mark.parametrize("rating", [None, {"S": "five"}, {"N": "4.5"}])
def test_items_without_an_integer_rating_are_skipped(store, add_rating, rating):
    add_rating("UC_A", "2024-01-01T00:00:00.000000Z", 5)
    item = {"channelId": {"S": "UC_A"}, "timestamp": {"S": "2024-01-02T00:00:00.000000Z"}}
    if rating is not None:
        item["rating"] = rating
    put_raw(store, item)

    assert [r.score for r in store.query_all_by_creator("UC_A")] == [5]
