from .feed import FeedGenerateRequest, FeedGenerateResponse, FeedResponse
from .home import (
    InterestsResponse,
    InterestsUpdateRequest,
    SuggestionsResponse,
)
from .thread import (
    AskThreadRequest,
    AskThreadResponse,
    ExchangeReply,
    OriginalReply,
    Reply,
    Thread,
    ThreadCreate,
    ThreadFromSuggestionRequest,
    ThreadFromSuggestionResponse,
    ThreadListResponse,
)
from .topic import Topic, TopicBase, TopicCreate

__all__ = [
    "AskThreadRequest",
    "AskThreadResponse",
    "ExchangeReply",
    "FeedGenerateRequest",
    "FeedGenerateResponse",
    "FeedResponse",
    "InterestsResponse",
    "InterestsUpdateRequest",
    "OriginalReply",
    "Reply",
    "SuggestionsResponse",
    "Thread",
    "ThreadCreate",
    "ThreadFromSuggestionRequest",
    "ThreadFromSuggestionResponse",
    "ThreadListResponse",
    "Topic",
    "TopicBase",
    "TopicCreate",
]
