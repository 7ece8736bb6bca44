"""Application-specific exceptions for consistent error handling."""

from typing import Any

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Application error with standardized error code."""

    status_code_default = status.HTTP_400_BAD_REQUEST
    code_default = "APP_ERROR"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | list[Any] | None = None,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ):
        status_code = status_code or self.status_code_default
        code = code or self.code_default
        super().__init__(
            status_code=status_code,
            detail={
                "code": code,
                "message": message,
                "details": details,
            },
        )
        self.code = code
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return self.message


class NotFoundError(AppError):
    """Entity id does not exist."""

    status_code_default = status.HTTP_404_NOT_FOUND
    code_default = "NOT_FOUND"


class QuestionValidationError(AppError):
    """A question draft violates a structural rule (title, options, correct answer)."""

    code_default = "VALIDATION_FAILED"


class InvalidReference(AppError):
    """A category or user reference does not resolve."""

    code_default = "INVALID_REFERENCE"


class InvalidCategoryReference(InvalidReference):
    code_default = "INVALID_CATEGORY_REFERENCE"

    def __init__(self, missing: list[str]):
        super().__init__(
            f"Invalid category reference(s): {', '.join(repr(m) for m in missing)}",
            {"missing": missing},
        )
        self.missing = missing


class InvalidApprover(InvalidReference):
    code_default = "INVALID_APPROVER"

    def __init__(self, value: Any):
        super().__init__(
            "approvedBy must reference an existing user when approving a question",
            {"approvedBy": None if value is None else str(value)},
        )


class DuplicateConflict(AppError):
    """Unique-name collision for categories or users."""

    code_default = "DUPLICATE"


class MalformedPayload(AppError):
    """A JSON-encoded sub-field could not be decoded."""

    code_default = "MALFORMED_PAYLOAD"


class InvalidCategoriesFormat(MalformedPayload):
    def __init__(self, raw: str):
        super().__init__("Invalid categories format", {"value": raw[:200]})


class InvalidTagsFormat(MalformedPayload):
    def __init__(self, raw: str):
        super().__init__("Invalid tags format", {"value": raw[:200]})


class UpstreamFailure(AppError):
    """Media store or backing store unreachable. Not retried."""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    code_default = "UPSTREAM_FAILURE"


class MediaUploadError(UpstreamFailure):
    pass


class AuthError(AppError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    code_default = "UNAUTHORIZED"


class InvalidUpload(AppError):
    """Attached file is not an image or exceeds the size limit."""

    code_default = "INVALID_UPLOAD"


class RowSourceError(AppError):
    """Bulk import file could not be read as rows."""

    code_default = "INVALID_IMPORT_FILE"
