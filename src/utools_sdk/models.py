"""Pydantic models for common upstream payloads.

Endpoints return raw JSON by default; pass one of these as ``target`` to
``UToolsClient.get``/``call`` for structured access. Unknown fields are
ignored.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def _null_means_default(cls, data: Any) -> Any:
        # upstream sends null for empty profile and tweet fields
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class UserResult(_Payload):
    id: str = Field("", alias="id_str")
    rest_id: str = ""
    name: str = ""
    screen_name: str = ""
    description: str = ""
    location: str = ""
    url: Optional[str] = None
    protected: bool = False
    verified: bool = False
    is_blue_verified: bool = False
    followers_count: int = 0
    friends_count: int = 0
    listed_count: int = 0
    favourites_count: int = 0
    statuses_count: int = 0
    media_count: int = 0
    created_at: str = ""
    profile_image_url: str = Field("", alias="profile_image_url_https")
    profile_banner_url: Optional[str] = None
    pinned_tweet_ids_str: List[str] = Field(default_factory=list)
    can_dm: bool = False


class UserListResult(_Payload):
    users: List[UserResult] = Field(default_factory=list)
    next_cursor: str = ""


class UsernameChange(_Payload):
    old_name: str = ""
    new_name: str = ""
    changed_at: str = ""


class RelationshipUser(_Payload):
    id: str = Field("", alias="id_str")
    screen_name: str = ""
    following: bool = False
    followed_by: bool = False
    blocking: bool = False
    muting: bool = False
    can_dm: bool = False
    want_retweets: bool = False
    notifications_enabled: bool = False


class RelationshipResult(_Payload):
    source: RelationshipUser
    target: RelationshipUser


class URLEntity(_Payload):
    url: str = ""
    expanded_url: str = ""
    display_url: str = ""


class HashtagEntity(_Payload):
    text: str = ""


class MentionEntity(_Payload):
    id: str = Field("", alias="id_str")
    name: str = ""
    screen_name: str = ""


class VideoVariant(_Payload):
    bitrate: int = 0
    content_type: str = ""
    url: str = ""


class VideoInfo(_Payload):
    duration_millis: int = 0
    aspect_ratio: List[int] = Field(default_factory=list)
    variants: List[VideoVariant] = Field(default_factory=list)


class MediaEntity(_Payload):
    id: str = Field("", alias="id_str")
    media_url: str = Field("", alias="media_url_https")
    url: str = ""
    expanded_url: str = ""
    type: str = ""  # photo, video, animated_gif
    video_info: Optional[VideoInfo] = None
    sizes: Optional[Any] = None


class TweetEntities(_Payload):
    urls: List[URLEntity] = Field(default_factory=list)
    hashtags: List[HashtagEntity] = Field(default_factory=list)
    user_mentions: List[MentionEntity] = Field(default_factory=list)
    symbols: List[HashtagEntity] = Field(default_factory=list)
    media: List[MediaEntity] = Field(default_factory=list)


class ExtendedEntities(_Payload):
    media: List[MediaEntity] = Field(default_factory=list)


class TweetResult(_Payload):
    id: str = Field("", alias="id_str")
    rest_id: str = ""
    full_text: str = ""
    text: str = ""
    created_at: str = ""
    conversation_id_str: str = ""
    in_reply_to_status_id_str: Optional[str] = None
    in_reply_to_user_id_str: Optional[str] = None
    in_reply_to_screen_name: Optional[str] = None
    lang: str = ""
    source: str = ""
    retweet_count: int = 0
    favorite_count: int = 0
    reply_count: int = 0
    quote_count: int = 0
    bookmark_count: int = 0
    view_count: Optional[str] = None
    is_quote_status: bool = False
    retweeted: bool = False
    favorited: bool = False
    bookmarked: bool = False
    user: Optional[UserResult] = None
    entities: Optional[TweetEntities] = None
    extended_entities: Optional[ExtendedEntities] = None
    quoted_status: Optional[TweetResult] = None
    retweeted_status: Optional[TweetResult] = None
    card: Optional[Any] = None

    def get_text(self) -> str:
        return self.full_text or self.text


class TweetListResult(_Payload):
    tweets: List[TweetResult] = Field(default_factory=list)
    next_cursor: str = ""


class TweetDetailResult(_Payload):
    tweet: TweetResult
    replies: List[TweetResult] = Field(default_factory=list)
    next_cursor: str = ""


class SearchResult(_Payload):
    tweets: List[TweetResult] = Field(default_factory=list)
    users: List[UserResult] = Field(default_factory=list)
    next_cursor: str = ""


class TrendResult(_Payload):
    name: str = ""
    query: str = ""
    url: str = ""
    tweet_volume: Optional[int] = None


class TrendsResult(_Payload):
    trends: List[TrendResult] = Field(default_factory=list)


TweetResult.model_rebuild()

__all__ = [
    "RelationshipResult",
    "RelationshipUser",
    "SearchResult",
    "TrendResult",
    "TrendsResult",
    "TweetDetailResult",
    "TweetListResult",
    "TweetResult",
    "UserListResult",
    "UserResult",
    "UsernameChange",
]
