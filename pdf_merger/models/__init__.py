
from .merge import CreateSessionRequest, MergeCard, MergeResultCard, OutputNameRequest, SessionState
from .session import MergeInProgress, MergeSession, SelectionLimitExceeded, SourceFileEntry

__all__ = [
    "CreateSessionRequest",
    "MergeCard",
    "MergeInProgress",
    "MergeResultCard",
    "MergeSession",
    "OutputNameRequest",
    "SelectionLimitExceeded",
    "SessionState",
    "SourceFileEntry",
]
