"""Mapping of form, dialog and backend errors to HTTP responses."""
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException, status

from qbank.client.base import ApiError
from qbank.forms.question_form import UnknownEntryError


def http_error(exc: ApiError) -> HTTPException:
    """Backend failure as an HTTP error; transport failures become 502."""
    return HTTPException(
        status_code=exc.status_code or status.HTTP_502_BAD_GATEWAY,
        detail=exc.detail,
    )


@contextmanager
def translate_errors() -> Iterator[None]:
    try:
        yield
    except UnknownEntryError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ApiError as exc:
        raise http_error(exc) from exc
    except ValueError as exc:
        # FormError, DialogError and pydantic validation errors
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
