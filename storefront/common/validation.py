import json
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from quart import request

from .errors import ValidationError

M = TypeVar("M", bound=BaseModel)


def error_details(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return json.loads(exc.json(include_url=False))


def validate(model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Request validation failed", details=error_details(e))


async def read_body(model: Type[M]) -> M:
    data = await request.get_json(silent=True)
    return validate(model, data if data is not None else {})


def read_query(model: Type[M]) -> M:
    return validate(model, request.args.to_dict())
