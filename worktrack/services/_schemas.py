"""
Input schema validation shared by the services.
"""
from typing import Callable, Dict, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from worktrack.core.exceptions import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def validate_fields(
    schema: Type[SchemaT],
    fields: Union[SchemaT, dict],
    message: Union[str, Callable[[Dict[str, str]], str]],
) -> SchemaT:
    """
    Validate `fields` against `schema` and return the model instance.

    Pydantic errors become a domain `ValidationError` whose details map each
    dotted field path to its error text. `message` is either the error message
    or a callable that picks one from those details.
    """
    if isinstance(fields, schema):
        return fields
    try:
        return schema.model_validate(fields)
    except PydanticValidationError as exc:
        details = {".".join(str(part) for part in err["loc"]): err["msg"] for err in exc.errors()}
        text = message(details) if callable(message) else message
        raise ValidationError(text, details=details) from exc
