# cyberguard/schemas/common.py
from pydantic import BaseModel, ConfigDict
from typing import Any, Optional


class RequestModel(BaseModel):
    """Request bodies accept camelCase keys (phoneNumber) as well as field names."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


def ok(message: str, data: Optional[Any] = None) -> dict:
    return {"success": True, "message": message, "data": data}
