import json
from typing import TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

ModelT = TypeVar('ModelT', bound=BaseModel)


async def parse_json_body(request: Request, model: type[ModelT]) -> ModelT:
    """Read and validate the request body inside a dependency.

    FastAPI decodes declared body parameters before any dependency runs, so
    routes that must answer 403 to non-owners whatever they send parse the
    body here, in a dependency that itself depends on the ownership check.
    Failures surface as RequestValidationError like any declared body would.
    """
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw else None
    except json.JSONDecodeError as exc:
        raise RequestValidationError(
            [{'type': 'json_invalid', 'loc': ('body', exc.pos), 'msg': 'JSON decode error', 'input': {}}]
        ) from exc

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise RequestValidationError(
            [{**error, 'loc': ('body', *error['loc'])} for error in exc.errors(include_url=False)]
        ) from exc
