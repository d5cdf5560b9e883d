"""Service layer for the scijournal client: API access, stores and uploads."""

from .articles import ALLOWED_TRANSITIONS, ArticleQuery, ArticleStore, CachePolicy, PublishDetails
from .authors import AuthorStore
from .discussions import DiscussionStore
from .errors import (
    ApiError,
    AuthenticationError,
    ClientError,
    NotFoundError,
    TransportError,
    UploadError,
    ValidationError,
)
from .fields import FieldStore
from .files import FileStore
from .http import ApiClient
from .issues import IssueStore
from .notifications import ConsoleNotifier, Notifier, RecordingNotifier
from .results import Failure, Result, Success
from .reviews import ReviewerInvite, ReviewStore
from .state import OperationState
from .storage import KeyValueStorage, LocalStorage, MemoryStorage
from .uploads import CloudinaryUploader, LocalFile, UploadedFile, UploadedImage, Uploader

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ApiClient",
    "ApiError",
    "ArticleQuery",
    "ArticleStore",
    "AuthenticationError",
    "AuthorStore",
    "CachePolicy",
    "ClientError",
    "CloudinaryUploader",
    "ConsoleNotifier",
    "DiscussionStore",
    "Failure",
    "FieldStore",
    "FileStore",
    "IssueStore",
    "KeyValueStorage",
    "LocalFile",
    "LocalStorage",
    "MemoryStorage",
    "NotFoundError",
    "Notifier",
    "OperationState",
    "PublishDetails",
    "RecordingNotifier",
    "Result",
    "ReviewStore",
    "ReviewerInvite",
    "Success",
    "TransportError",
    "UploadError",
    "UploadedFile",
    "UploadedImage",
    "Uploader",
    "ValidationError",
]
