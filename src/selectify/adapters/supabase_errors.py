"""Translation of Supabase client failures into store errors."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import httpx
from postgrest.exceptions import APIError
from storage3.utils import StorageException

from selectify.domain.errors import StoreUnavailable

logger = logging.getLogger(__name__)


@contextmanager
def translate_store_errors(entity: str) -> Iterator[None]:
    """Re-raise client, API and transport errors as ``StoreUnavailable``.

    Timeouts surface from httpx and are treated like any other failure.
    """
    try:
        yield
    except (APIError, StorageException, httpx.HTTPError) as exc:
        logger.warning(
            "Store request failed",
            extra={"entity": entity, "error_type": type(exc).__name__},
        )
        raise StoreUnavailable() from exc
