"""Wire the certificate workflow to concrete collaborators."""

from __future__ import annotations

import requests

from certflow.services.google.config import GoogleConfig
from certflow.services.google.drive import DriveClient
from certflow.services.google.gmail import GmailClient
from certflow.services.google.http import HttpClient
from certflow.services.google.sheets import SheetsClient
from certflow.services.google.slides import SlidesClient

from .contracts import FeedbackSink, TabularSource, WorkspaceServices
from .feedback import LoggerFeedback


def google_services(
    config: GoogleConfig,
    *,
    feedback: FeedbackSink | None = None,
    roster_source: TabularSource | None = None,
    session: requests.Session | None = None,
) -> WorkspaceServices:
    """Build the Google Workspace collaborators over one shared HTTP session.

    ``roster_source`` replaces the Sheets client, e.g. with a local workbook.
    """

    http_client = HttpClient(config, session=session)
    drive = DriveClient(http_client)
    return WorkspaceServices(
        template_store=drive,
        editor=SlidesClient(http_client),
        container=drive,
        roster_source=roster_source or SheetsClient(http_client),
        messenger=GmailClient(http_client, drive.download_file),
        feedback=feedback or LoggerFeedback(),
    )


__all__ = ["google_services"]
