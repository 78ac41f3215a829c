from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

EXPORTED_USING = "postgen"


class EnvValue(BaseModel):
    key: str
    value: str
    type: str = "text"
    enabled: bool = True


class Environment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    values: list[EnvValue] = Field(default_factory=list)
    variable_scope: str = Field(default="environment", alias="_postman_variable_scope")
    exported_at: str = Field(default="", alias="_postman_exported_at")
    exported_using: str = Field(default=EXPORTED_USING, alias="_postman_exported_using")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


def build_environment(name: str, base_url: str) -> Environment:
    """Environment holding the baseUrl variable every generated request refers to."""
    return Environment(
        id=str(uuid.uuid4()),
        name=name,
        values=[EnvValue(key="baseUrl", value=base_url)],
        exported_at=datetime.now(timezone.utc).astimezone().isoformat(timespec="seconds"),
    )
