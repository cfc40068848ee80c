"""Event delivery into the locator engine."""

from .channel import EventChannel, ChannelStats
from .feeds import FeedError, MockFeed, ReplayFeed, parse_event, event_to_record

__all__ = [
    "EventChannel",
    "ChannelStats",
    "FeedError",
    "MockFeed",
    "ReplayFeed",
    "parse_event",
    "event_to_record",
]
