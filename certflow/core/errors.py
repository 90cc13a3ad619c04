"""Custom exceptions used across certflow."""


class CertFlowError(Exception):
    """Base error for the application."""


class ConfigError(CertFlowError):
    """Configuration related error."""


class ColumnNotFoundError(ConfigError):
    """Raised when a configured column header is absent from the roster."""

    def __init__(self, header: str, available: list[str] | None = None) -> None:
        self.header = header
        self.available = list(available or [])
        super().__init__(f"Column header '{header}' not found in roster (available: {self.available})")


class ArtifactGenerationError(CertFlowError):
    """Raised when a certificate cannot be produced."""
