__all__ = [
    "CommentsFeedbackStrategy",
    "DefaultFeedbackStrategy",
    "DefaultSubmissionStrategy",
    "FeedbackStrategy",
    "OnlineTextStrategy",
    "Payload",
    "PluginDataGateway",
    "PluginRegistry",
    "SubmissionStrategy",
    "builtin_registry",
]

from .base import DefaultFeedbackStrategy, DefaultSubmissionStrategy, FeedbackStrategy, Payload, SubmissionStrategy
from .comments import CommentsFeedbackStrategy
from .gateway import PluginDataGateway
from .onlinetext import OnlineTextStrategy
from .registry import PluginRegistry


def builtin_registry() -> PluginRegistry:
    return PluginRegistry(
        submission={OnlineTextStrategy.type: OnlineTextStrategy()},
        feedback={CommentsFeedbackStrategy.type: CommentsFeedbackStrategy()},
    )
