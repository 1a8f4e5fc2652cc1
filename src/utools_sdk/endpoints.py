"""Table of upstream operations: name, HTTP path and accepted parameters.

Every entry is a thin mapping onto ``UToolsClient.request``; none of them add
behavior of their own beyond parameter naming.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import APIError, AuthTokenRequiredError

API_PREFIX = "/api/base/apitools"


@dataclass(frozen=True)
class Param:
    name: str
    wire_names: Tuple[str, ...]
    required: bool = False

    @classmethod
    def of(cls, name: str, *wire_names: str, required: bool = False) -> "Param":
        return cls(name=name, wire_names=wire_names or (name,), required=required)


@dataclass(frozen=True)
class Endpoint:
    name: str
    path: str
    params: Tuple[Param, ...] = ()
    requires_auth: bool = False
    method: str = "GET"
    fallback_paths: Tuple[str, ...] = ()

    @property
    def paginated(self) -> bool:
        return any(param.name == "cursor" for param in self.params)

    @property
    def paths(self) -> Tuple[str, ...]:
        return (self.path, *self.fallback_paths)

    def build_params(
        self,
        arguments: Mapping[str, Any],
        auth_token: Optional[str] = None,
        ct0: Optional[str] = None,
    ) -> Dict[str, str]:
        known = {param.name for param in self.params}
        unknown = sorted(set(arguments) - known)
        if unknown:
            raise TypeError(f"{self.name}() got unexpected argument(s): {', '.join(unknown)}")

        out: Dict[str, str] = {}
        if self.requires_auth:
            if not auth_token:
                raise AuthTokenRequiredError(self.name)
            out["auth_token"] = auth_token
            if ct0:
                out["ct0"] = ct0

        for param in self.params:
            value = _encode(arguments.get(param.name))
            if not value:
                if param.required:
                    raise TypeError(f"{self.name}() missing required argument: {param.name!r}")
                continue
            for wire_name in param.wire_names:
                out[wire_name] = value
        return out


def _encode(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(str(item) for item in value)
    return str(value)


def should_try_next_path(exc: BaseException) -> bool:
    """Whether a failed call on one path should be repeated on a fallback path."""
    if not isinstance(exc, APIError):
        return False
    if exc.status_code >= 500:
        return True
    text = f"{exc.message} {exc.raw_body}".lower()
    return "no static resource" in text or "not found" in text


def _path(name: str) -> str:
    return f"{API_PREFIX}/{name}"


CURSOR = Param.of("cursor")
USER_ID = Param.of("user_id", "userId", required=True)
TWEET_ID = Param.of("tweet_id", "tweetId", required=True)
SCREEN_NAME = Param.of("screen_name", "screenName", required=True)
LIST_ID = Param.of("list_id", "listId", required=True)
COMMUNITY_ID = Param.of("community_id", "communityId", required=True)


def _user_page(name: str, path: str, requires_auth: bool = False) -> Endpoint:
    return Endpoint(name, _path(path), (USER_ID, CURSOR), requires_auth=requires_auth)


_ENDPOINTS: Tuple[Endpoint, ...] = (
    # users
    Endpoint("user_by_screen_name", _path("screenname"), (SCREEN_NAME,)),
    Endpoint("user_by_id", _path("id"), (USER_ID,)),
    Endpoint("users_by_ids", _path("ids"), (Param.of("user_ids", "userIds", required=True),)),
    Endpoint("username_changes", _path("usernameChanges"), (USER_ID,)),
    Endpoint(
        "lookup_user",
        _path("lookup"),
        (Param.of("screen_name", "screenName"), Param.of("user_id", "userId")),
    ),
    Endpoint("user_by_screen_name_v2", _path("userByScreenNameV2"), (SCREEN_NAME,)),
    Endpoint("user_by_id_v2", _path("uerByIdRestIdV2"), (USER_ID,)),
    Endpoint("users_by_ids_v2", _path("usersByIdRestIds"), (Param.of("user_ids", "userIds", required=True),)),
    Endpoint("account_analytics", _path("accountAnalytics"), requires_auth=True),
    # tweets
    _user_page("user_tweets", "userTweetsV2"),
    _user_page("user_timeline", "userTimeline"),
    Endpoint(
        "tweet_detail",
        _path("tweetTimeline"),
        (Param.of("tweet_id", "tweetId", "tweet_id", "id", required=True), CURSOR),
    ),
    Endpoint(
        "tweet_simple",
        _path("tweetSimple"),
        (Param.of("tweet_id", "tweetId", "tweet_id", "tweetIds", "id", required=True),),
    ),
    Endpoint("tweets_by_ids", _path("tweetResultsByRestIds"), (Param.of("tweet_ids", "tweetIds", required=True),)),
    _user_page("user_replies", "userTweetReply"),
    _user_page("user_likes", "favoritesList"),
    _user_page("user_likes_v2", "userLikeV2"),
    _user_page("user_highlights", "highlightsV2"),
    Endpoint(
        "user_articles_tweets",
        _path("userArticlesTweets"),
        (USER_ID, CURSOR),
        fallback_paths=(_path("userArticlesTweetsV2"), _path("userArticleTweets")),
    ),
    Endpoint("home_timeline", _path("homeTimeline"), (CURSOR,), requires_auth=True),
    Endpoint("mentions_timeline", _path("mentionsTimeline"), (CURSOR,), requires_auth=True),
    # tweet interactions
    Endpoint("retweeters", _path("retweetersV2"), (TWEET_ID, CURSOR)),
    Endpoint(
        "retweeters_ids",
        _path("retweetersIds"),
        (Param.of("tweet_id", "tweetId", "tweet_id", "id", required=True), CURSOR),
    ),
    Endpoint("favoriters", _path("favoritersV2"), (TWEET_ID, CURSOR), requires_auth=True),
    Endpoint("quotes", _path("quotesV2"), (TWEET_ID, CURSOR)),
    # search and trends
    Endpoint(
        "search",
        _path("search"),
        (
            Param.of("query", "words", required=True),
            Param.of("search_type", "type"),
            Param.of("from_user", "from"),
            Param.of("since"),
            Param.of("until"),
            CURSOR,
        ),
    ),
    Endpoint("search_box", _path("searchBox"), (Param.of("query", "words", required=True),)),
    Endpoint("trends", _path("trends"), (Param.of("woeid", "woeid", "id"),)),
    Endpoint("trending", _path("trending")),
    Endpoint("news", _path("news")),
    Endpoint("explore", _path("explore")),
    Endpoint("sports", _path("sports")),
    Endpoint("entertainment", _path("entertainment")),
    # social relationships
    _user_page("followers", "followersListV2"),
    _user_page("followings", "followingsListV2"),
    _user_page("follower_ids", "followersIds"),
    _user_page("following_ids", "followingsIds"),
    Endpoint(
        "relationship",
        _path("getFriendshipsShow"),
        (Param.of("source_id", "sourceId", required=True), Param.of("target_id", "targetId", required=True)),
    ),
    _user_page("followers_you_know", "followersYouKnowV2"),
    _user_page("blue_verified_followers", "blueVerifiedFollowersV2"),
    # lists
    Endpoint(
        "lists_by_user",
        _path("getListByUserIdOrScreenName"),
        (Param.of("user_id", "userId"), Param.of("screen_name", "screenName")),
    ),
    Endpoint("list_members", _path("listMembersByListIdV2"), (LIST_ID, CURSOR)),
    Endpoint("list_timeline", _path("listLatestTweetsTimeline"), (LIST_ID, CURSOR)),
    # communities
    Endpoint("communities_by_screen_name", _path("getCommunitiesByScreenName"), (SCREEN_NAME,)),
    Endpoint("community_info", _path("communitiesFetchOneQuery"), (COMMUNITY_ID,)),
    Endpoint("community_tweets", _path("communitiesTweetsTimelineV2"), (COMMUNITY_ID, CURSOR)),
    Endpoint("community_members", _path("communitiesMemberV2"), (COMMUNITY_ID, CURSOR)),
    # maintenance
    Endpoint("token_sync", _path("tokenSync")),
)

ENDPOINTS: Dict[str, Endpoint] = {endpoint.name: endpoint for endpoint in _ENDPOINTS}


def get_endpoint(name: str) -> Endpoint:
    try:
        return ENDPOINTS[name]
    except KeyError:
        raise KeyError(f"unknown utools endpoint: {name!r}") from None


__all__ = ["API_PREFIX", "ENDPOINTS", "Endpoint", "Param", "get_endpoint", "should_try_next_path"]
