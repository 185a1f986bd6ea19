from pr_review_agent.azure_devops.client import AzureDevOpsClient
from pr_review_agent.azure_devops.languages import identify_language
from pr_review_agent.azure_devops.schemas import (
    PULL_REQUEST_CREATED,
    ChangeType,
    Comment,
    CommentThread,
    FileChange,
    PullRequestEvent,
    PullRequestRef,
)

__all__ = [
    "AzureDevOpsClient",
    "identify_language",
    "PULL_REQUEST_CREATED",
    "ChangeType",
    "Comment",
    "CommentThread",
    "FileChange",
    "PullRequestEvent",
    "PullRequestRef",
]
