"""Schema Base — camelCase aliasing shared by every request model."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase (wire) or snake_case (tests, internal callers)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def changes(self) -> dict:
        """Only the fields the client actually sent, snake_case keys."""
        return self.model_dump(exclude_unset=True)
