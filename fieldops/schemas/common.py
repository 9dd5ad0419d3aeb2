import uuid

from pydantic import BaseModel


class IdResponse(BaseModel):
    id: uuid.UUID


class ExpiryInfo(BaseModel):
    label: str
    tier: str
    days_left: int | None = None
