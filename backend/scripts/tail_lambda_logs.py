from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime, timezone
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

DEFAULT_GROUP_FILTER = "/aws/lambda/"


def find_log_groups(logs_client, name_filter: str) -> list[str]:
    groups: list[str] = []
    paginator = logs_client.get_paginator("describe_log_groups")
    for page in paginator.paginate():
        for group in page.get("logGroups", []):
            name = group.get("logGroupName") or ""
            if name_filter in name:
                groups.append(name)
    return groups


def recent_events(logs_client, group_name: str, max_streams: int, max_events: int) -> list[dict[str, Any]]:
    streams = logs_client.describe_log_streams(
        logGroupName=group_name,
        orderBy="LastEventTime",
        descending=True,
        limit=max_streams,
    ).get("logStreams", [])

    events: list[dict[str, Any]] = []
    for stream in streams:
        response = logs_client.get_log_events(
            logGroupName=group_name,
            logStreamName=stream["logStreamName"],
            limit=max_events,
            startFromHead=False,
        )
        for event in response.get("events", []):
            events.append({"stream": stream["logStreamName"], **event})
    events.sort(key=lambda e: e.get("timestamp", 0))
    return events


def format_event(event: dict[str, Any]) -> str:
    stamp = datetime.fromtimestamp(event.get("timestamp", 0) / 1000, tz=timezone.utc).isoformat()
    return f"{stamp} {(event.get('message') or '').rstrip()}"


def main() -> int:
    parser = argparse.ArgumentParser(description="Print recent CloudWatch log events for the rating functions.")
    parser.add_argument("--filter", default=DEFAULT_GROUP_FILTER, help="Substring matched against log group names.")
    parser.add_argument("--streams", type=int, default=5)
    parser.add_argument("--events", type=int, default=50)
    parser.add_argument("--region", default=os.getenv("AWS_REGION", "us-east-1"))
    args = parser.parse_args()

    logs_client = boto3.client("logs", region_name=args.region)
    try:
        groups = find_log_groups(logs_client, args.filter)
        if not groups:
            print(f"No log groups matching {args.filter!r}")
            return 1
        for group_name in groups:
            print(f"\n== {group_name}")
            events = recent_events(logs_client, group_name, args.streams, args.events)
            if not events:
                print("No log events found")
            for event in events:
                print(format_event(event))
    except (BotoCoreError, ClientError) as exc:
        print(f"Could not read CloudWatch logs: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
