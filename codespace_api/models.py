from datetime import datetime
from typing import Optional

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel


class CamelModel(SQLModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccountBase(CamelModel):
    username: str


class AccountCreate(CamelModel):
    username: Optional[str] = None


class AccountCreated(AccountBase):
    temp_password: str
    home_directory: str
    ssh_public_key: str


class AccountRead(AccountBase):
    home_directory: str
    ssh_public_key: str
    is_active: bool


class MessageRead(SQLModel):
    message: str


class HealthRead(SQLModel):
    status: str
    timestamp: datetime
