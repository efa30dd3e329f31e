"""Exception hierarchy surfaced to the CLI user."""

from __future__ import annotations


class HumeCliError(Exception):
    """Base class for errors reported as ``Error: <message>`` with exit code 1."""


class ConfigurationError(HumeCliError):
    """Conflicting flags or unusable settings, raised before any network call."""


class ContinuationError(HumeCliError):
    """``--last`` could not be resolved against the generation history."""


class InstantModeError(HumeCliError):
    """An instant-mode precondition is not met."""


class ApiKeyNotSetError(HumeCliError):
    def __init__(self) -> None:
        super().__init__(
            "No API key provided. You may run `hume login`, set the HUME_API_KEY "
            "environment variable, or pass the --api-key flag."
        )


class HumeAPIError(HumeCliError):
    """Non-success response from the Hume API."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"Hume API error {status}: {body}")


class ResponseProtocolError(HumeCliError):
    """A successful service response could not be decoded."""


class StreamProtocolError(ResponseProtocolError):
    """A streamed chunk could not be decoded."""


class OutputWriteError(HumeCliError):
    """Audio, history or config could not be written to disk."""


class AudioPlayerError(HumeCliError):
    """The audio player is missing, unsuitable, or exited unsuccessfully."""
