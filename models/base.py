"""Base model with camelCase aliases for request bodies and wire frames."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase on input, dumps camelCase with ``by_alias``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
