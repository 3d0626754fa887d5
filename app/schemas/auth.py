from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    id: str
    email: str


class Session(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    user: User
