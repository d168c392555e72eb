"""Shared pydantic base for persisted tracker entities."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TrackerModel(BaseModel):
    """Base model: snake_case attributes, camelCase JSON keys.

    Both spellings are accepted on input so that documents written by the
    JSON store and payloads built in Python validate the same way.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)
