"""
Maps onboarding errors onto HTTP responses.
"""
from fastapi import HTTPException
from onboarding.modules.users.exceptions import ErrorKind, PINMismatchError, ensure_onboarding_error

STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.UPSTREAM_FAILURE: 502,
    ErrorKind.PERSISTENCE_FAILURE: 503,
    ErrorKind.INTERNAL: 500,
}


def to_http_exception(exc: Exception) -> HTTPException:
    err = ensure_onboarding_error(exc)
    if isinstance(err, PINMismatchError):
        status_code = 401
    else:
        status_code = STATUS_BY_KIND.get(err.kind, 500)
    return HTTPException(status_code=status_code, detail=err.to_dict())
