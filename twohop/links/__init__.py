"""Link aggregation and preview extraction for the active note."""

from twohop.links.aggregator import LinkAggregator, aggregate_twohop_links
from twohop.links.path_filter import PathFilter, is_excluded
from twohop.links.preview import PreviewExtractor

__all__ = [
    "LinkAggregator",
    "PathFilter",
    "PreviewExtractor",
    "aggregate_twohop_links",
    "is_excluded",
]
