from enum import Enum

from sqlmodel import Field, SQLModel


class Role(str, Enum):
    USER = "USER"
    GUIDE = "GUIDE"
    RESTAURANT = "RESTAURANT"


class User(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    username: str
    email: str = Field(index=True, unique=True)
    password: str  # argon2 hash, never the plain text
    role: Role = Field(default=Role.USER)
