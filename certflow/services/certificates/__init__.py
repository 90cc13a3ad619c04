"""Certificate generation and delivery workflow."""

from .contracts import OutgoingMessage, WorkspaceServices
from .generator import ArtifactGenerator
from .models import BatchReport, FailurePolicy, MessageOptions, ProcessConfiguration, RosterBinding
from .recipient import Recipient
from .roster import RosterProcessor

__all__ = [
    "ArtifactGenerator",
    "BatchReport",
    "FailurePolicy",
    "MessageOptions",
    "OutgoingMessage",
    "ProcessConfiguration",
    "Recipient",
    "RosterBinding",
    "RosterProcessor",
    "WorkspaceServices",
]
