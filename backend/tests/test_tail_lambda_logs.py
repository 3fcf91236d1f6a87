from unittest.mock import MagicMock

from backend.scripts.tail_lambda_logs import find_log_groups, format_event, recent_events


def test_find_log_groups_filters_every_page():
    logs_client = MagicMock()
    logs_client.get_paginator.return_value.paginate.return_value = [
        {"logGroups": [{"logGroupName": "/aws/lambda/ratings"}, {"logGroupName": "/ecs/other"}]},
        {"logGroups": [{"logGroupName": "/aws/lambda/search"}]},
    ]
    assert find_log_groups(logs_client, "/aws/lambda/") == ["/aws/lambda/ratings", "/aws/lambda/search"]
    logs_client.get_paginator.assert_called_once_with("describe_log_groups")


def test_recent_events_merges_streams_in_time_order():
    logs_client = MagicMock()
    logs_client.describe_log_streams.return_value = {"logStreams": [{"logStreamName": "s1"}, {"logStreamName": "s2"}]}
    logs_client.get_log_events.side_effect = [
        {"events": [{"timestamp": 3000, "message": "late"}]},
        {"events": [{"timestamp": 1000, "message": "early"}]},
    ]

    events = recent_events(logs_client, "/aws/lambda/ratings", max_streams=2, max_events=10)

    assert [(e["stream"], e["message"]) for e in events] == [("s2", "early"), ("s1", "late")]


def test_format_event():
    assert format_event({"timestamp": 0, "message": "START RequestId: abc\n"}) == (
        "1970-01-01T00:00:00+00:00 START RequestId: abc"
    )
