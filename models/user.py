from pydantic import BaseModel
from enum import Enum

class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"

class UserBase(BaseModel):
    username: str
    email: str

class User(UserBase):
    id: int
    role: Role = Role.USER
    created_at: str

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
