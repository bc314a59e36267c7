from typing import Optional

from fastapi import Header, HTTPException

from obralink.core.errors import CoreError, ErrorKind

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.EMPTY_ATTENDANCE: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ALREADY_LOCKED: 409,
    ErrorKind.PRECEDING_STAGE_NOT_VALIDATED: 409,
    ErrorKind.ALREADY_VALIDATED: 409,
    ErrorKind.CONFLICT: 409,
}


class CoreHTTPException(HTTPException):
    def __init__(self, error: CoreError, status_code: int):
        super().__init__(status_code=status_code, detail=error.detail)
        self.kind = error.kind


def http_error(error: CoreError, *, precondition_sent: bool = False) -> CoreHTTPException:
    status_code = _STATUS_BY_KIND[error.kind]
    if error.kind == ErrorKind.CONFLICT and precondition_sent:
        status_code = 412
    return CoreHTTPException(error, status_code)


def unwrap(result, *, precondition_sent: bool = False):
    """Return a core result, or raise it as the matching HTTP error."""
    if isinstance(result, CoreError):
        raise http_error(result, precondition_sent=precondition_sent)
    return result


def etag_for(version: int) -> str:
    return f'"{int(version)}"'


def expected_version(if_match: Optional[str] = Header(default=None, alias="If-Match")) -> Optional[int]:
    """Parse an If-Match header carrying a report ETag ("3", W/"3" or 3). "*" matches any version."""
    if if_match is None or if_match.strip() == "*":
        return None

    value = if_match.strip()
    if value.startswith("W/"):
        value = value[2:]
    value = value.strip('"')

    try:
        return int(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Malformed If-Match header: {if_match}") from exc
