"""Google Workspace REST integration (Drive, Slides, Sheets, Gmail)."""

from .auth import AuthClient
from .config import GoogleConfig, RetryConfig, resolve_config
from .drive import DriveClient
from .gmail import GmailClient
from .http import HttpClient
from .sheets import SheetsClient
from .slides import SlidesClient

__all__ = [
    "AuthClient",
    "DriveClient",
    "GmailClient",
    "GoogleConfig",
    "HttpClient",
    "RetryConfig",
    "SheetsClient",
    "SlidesClient",
    "resolve_config",
]
