"""Custom exception types for featuresync.

Every fatal outcome of a pipeline run is a :class:`FeatureSyncError`; the
CLI maps any of them to exit code 1.
"""

from __future__ import annotations

from typing import Optional


class FeatureSyncError(Exception):
    """Base class for fatal pipeline failures."""

    default_message = "Feature sync failed."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        source: Optional[str] = None,
        stage: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        self.source = source
        self.stage = stage
        super().__init__(self.message)

    def __str__(self) -> str:
        context_parts: list[str] = []
        if self.stage:
            context_parts.append(f"stage={self.stage}")
        if self.source:
            context_parts.append(f"source={self.source}")
        context = ", ".join(context_parts)
        return f"{self.message} ({context})" if context else self.message


class SourceNotFoundError(FeatureSyncError):
    """Raised when a local snapshot path does not exist."""

    default_message = "Local file not found."


class SourceTimeoutError(FeatureSyncError):
    """Raised when the remote page is not fully received before the deadline."""

    default_message = "Request timeout."


class BlockedByProtectionError(FeatureSyncError):
    """Raised when the remote site answers with a bot-protection challenge."""

    default_message = (
        "Access blocked by bot protection. The website requires browser verification."
    )


class FetchNetworkError(FeatureSyncError):
    """Raised for any other transport failure while fetching the page."""

    default_message = "Network error while fetching the page."


class ExtractionFailedError(FeatureSyncError):
    """Raised when no region of the markup holds the embedded catalog."""

    default_message = "Could not find quiz-element."


class MissingMarkerError(FeatureSyncError):
    """Raised when the extracted scripts lack the year/model assignment."""

    default_message = "Could not find window.yearNameCombos in script content."


class ParseFailedError(FeatureSyncError):
    """Raised when the extracted data cannot be materialized or validated."""

    default_message = "Could not parse embedded catalog data."


class ConfigError(FeatureSyncError):
    """Raised when the settings file cannot be parsed."""

    default_message = "Invalid configuration file."


class OutputWriteError(FeatureSyncError):
    """Raised when the output snapshot cannot be written."""

    default_message = "Could not write output file."


__all__ = [
    "BlockedByProtectionError",
    "ConfigError",
    "ExtractionFailedError",
    "FeatureSyncError",
    "FetchNetworkError",
    "MissingMarkerError",
    "OutputWriteError",
    "ParseFailedError",
    "SourceNotFoundError",
    "SourceTimeoutError",
]
