"""uTools Python SDK."""

from .client import UToolsClient
from .config import ClientConfig, load_config
from .cursor import Cursors, extract_cursors
from .errors import (
    APIError,
    AuthTokenRequiredError,
    ConfigError,
    DecodeError,
    MissingAPIKeyError,
    PaginationError,
    TransportError,
    UToolsError,
)
from .models import (
    RelationshipResult,
    RelationshipUser,
    SearchResult,
    TrendResult,
    TrendsResult,
    TweetDetailResult,
    TweetListResult,
    TweetResult,
    UserListResult,
    UsernameChange,
    UserResult,
)
from .observability import ClientObserver, CompositeObserver, LoggingObserver, PrometheusObserver
from .pagination import NO_MORE_PAGES, PageIterator, PageResult

__all__ = [
    "APIError",
    "AuthTokenRequiredError",
    "ClientConfig",
    "ClientObserver",
    "CompositeObserver",
    "ConfigError",
    "Cursors",
    "DecodeError",
    "LoggingObserver",
    "MissingAPIKeyError",
    "NO_MORE_PAGES",
    "PageIterator",
    "PageResult",
    "PaginationError",
    "PrometheusObserver",
    "RelationshipResult",
    "RelationshipUser",
    "SearchResult",
    "TransportError",
    "TrendResult",
    "TrendsResult",
    "TweetDetailResult",
    "TweetListResult",
    "TweetResult",
    "UToolsClient",
    "UToolsError",
    "UserListResult",
    "UserResult",
    "UsernameChange",
    "extract_cursors",
    "load_config",
]
