# intelliconsult/schemas/admin/admin.py
from pydantic import BaseModel
from typing import List, Optional

from ..users.user import UserResponse


class UserListResponse(BaseModel):
    user_type: str
    count: int
    users: List[UserResponse]


class AdminActionResponse(BaseModel):
    message: str
    user: Optional[UserResponse] = None
