# intelliconsult/schemas/common/common.py
from pydantic import BaseModel
from typing import Any, Optional


class MessageResponse(BaseModel):
    message: str


class ApiResponse(BaseModel):
    success: bool = True
    message: str
    data: Optional[Any] = None
