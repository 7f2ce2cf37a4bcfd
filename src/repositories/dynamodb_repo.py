"""
DynamoDB repository for assignment history.

Items are keyed by ``ticket_id`` (partition) and ``event_key`` (sort). The sort
key is the event's UTC timestamp at microsecond precision followed by the event
type, so a ticket's history reads back in time order and range queries on
time work on the raw key.
"""

from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

import boto3
from boto3.dynamodb.conditions import Key

PARTITION_KEY = "ticket_id"
SORT_KEY = "event_key"


def history_key(timestamp: datetime) -> str:
    """Fixed-width UTC rendering; naive datetimes are taken as UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class AssignmentHistoryRepository:
    """Append-only log of assignment and status events per ticket."""

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        self.table = boto3.resource("dynamodb", region_name=region_name).Table(table_name)

    def put(self, item: Dict[str, Any]) -> None:
        """Insert an item. It must carry both key attributes."""
        missing = [key for key in (PARTITION_KEY, SORT_KEY) if not item.get(key)]
        if missing:
            raise ValueError(f"History item is missing key attributes: {', '.join(missing)}")
        self.table.put_item(Item=item)

    def record(self, event, event_type: str) -> Dict[str, Any]:
        """Write a domain event and return the stored item."""
        item = event.model_dump(mode="json", exclude_none=True)
        item["event_type"] = event_type
        item[SORT_KEY] = f"{history_key(event.timestamp)}#{event_type}"
        self.put(item)
        return item

    def query_for_ticket(
        self, ticket_id: str, limit: int = 50, since: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Most recent history entries for a ticket, optionally only those at or after ``since``."""
        condition = Key(PARTITION_KEY).eq(ticket_id)
        if since is not None:
            condition = condition & Key(SORT_KEY).gte(history_key(since))
        resp = self.table.query(
            KeyConditionExpression=condition,
            ScanIndexForward=False,
            Limit=limit,
        )
        return resp.get("Items", [])
