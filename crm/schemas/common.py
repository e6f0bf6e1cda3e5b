"""Shared schema bases and response shaping."""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel


class ORMModel(BaseModel):
    model_config = {"from_attributes": True}


class RequestModel(BaseModel):
    """Request bodies: unknown keys ignored, camelCase aliases accepted."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def provided(self, *exclude: str) -> dict[str, Any]:
        """Fields the client actually sent, minus `exclude`."""
        data = self.model_dump(exclude_unset=True)
        for key in exclude:
            data.pop(key, None)
        return data


def dump(schema: type[BaseModel], obj: Any) -> dict[str, Any] | None:
    if obj is None:
        return None
    return schema.model_validate(obj).model_dump(mode="json")


def dump_many(schema: type[BaseModel], objs: Iterable[Any]) -> list[dict[str, Any]]:
    return [schema.model_validate(o).model_dump(mode="json") for o in objs]


def ok(data: Any = None, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body
