from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict
from typing import Any, Optional


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored in UTC; naive values are read as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class BaseGolfModel(BaseModel):
    """Shared configuration and methods."""
    model_config = ConfigDict(validate_assignment=True)

    def with_changes(self, **fields: Any):
        """Validated copy with some fields replaced."""
        return type(self).model_validate({**self.model_dump(), **fields})


class FrozenGolfModel(BaseModel):
    """Immutable record: written once, never updated in place."""
    model_config = ConfigDict(frozen=True)
