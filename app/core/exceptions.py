"""Core custom exceptions for the application.

Upload failures are modelled as a small family of exceptions. Each one knows
the HTTP status and the client-facing message it maps to; the conversion to a
JSON response happens once, in the application's exception handler.
"""

from app.core.validation import REPORT_FIELD_NAME


class UploadError(Exception):
    """Base exception for upload-related errors."""

    status_code: int = 400
    default_message: str = "An error occurred during file upload."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class TooManyFilesError(UploadError):
    """A second file, or a file under an unexpected field, was sent."""

    default_message = f"Only a single file can be uploaded for {REPORT_FIELD_NAME}."


class UploadParserError(UploadError):
    """The multipart body could not be parsed or broke a parser limit."""

    default_message = "Malformed multipart request."


class FileTooLargeError(UploadParserError):
    """The uploaded file exceeded the size limit while being written."""

    default_message = "File too large"


class InvalidFileTypeError(UploadError):
    default_message = "Invalid file type. Only PDF files are accepted."


class UnexpectedUploadError(UploadError):
    """Anything that is not a client mistake."""

    status_code = 500
