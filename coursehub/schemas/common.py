"""
coursehub/schemas/common.py
Success envelope shared by every route
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


def ok(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Wrap a payload as {success: true, data?, message?}"""
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body
