"""FastAPI dependencies staging request bodies into strict records."""

from __future__ import annotations

from collections.abc import Awaitable
from collections.abc import Callable
import logging
from typing import Any

from fastapi import Request

from recordguard.engine.registry import schema_for
from recordguard.engine.staging import stage

logger = logging.getLogger(__name__)


def validated_body(target: Any) -> Callable[[Request], Awaitable[Any]]:
    """Return a dependency yielding the staged record for ``target``.

    Violations raise :class:`~recordguard.core.errors.ValidationFailed`, which
    ``register_error_handlers`` renders in the shared error envelope. A body
    that is not a JSON object is reported as ``invalid_payload``.
    """
    schema = schema_for(target)

    async def dependency(request: Request) -> Any:
        try:
            payload = await request.json()
        except ValueError:
            payload = None

        result = stage(payload, schema)
        if not result.ok:
            logger.info("Rejected %s request body with %d error(s)", schema.name, len(result.errors))
        return result.unwrap()

    return dependency
