import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, field_validator


def _clean_categories(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    seen = []
    for c in v:
        c = c.strip()
        if c and c not in seen:
            seen.append(c)
    return seen


class ContractorBase(BaseModel):
    company_name: str
    business_license: str
    nationality: str
    categories: List[str] = []
    contact_person: str
    email: str
    phone: str
    address: str
    previous_projects: str = ""
    rating: Optional[str] = None
    is_active: bool = True

    @field_validator("company_name")
    @classmethod
    def strip_company_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("company_name must not be empty")
        return v

    @field_validator("categories")
    @classmethod
    def dedupe_categories(cls, v):
        return _clean_categories(v)


class ContractorCreate(ContractorBase):
    documents: List[uuid.UUID] = []
    created_by: Optional[uuid.UUID] = None


class ContractorUpdate(BaseModel):
    company_name: Optional[str] = None
    business_license: Optional[str] = None
    nationality: Optional[str] = None
    categories: Optional[List[str]] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    previous_projects: Optional[str] = None
    rating: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("company_name")
    @classmethod
    def strip_company_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("company_name must not be empty")
        return v

    @field_validator("categories")
    @classmethod
    def dedupe_categories(cls, v):
        return _clean_categories(v)


class ContractorRating(BaseModel):
    rating: Optional[str] = None


class ContractorResponse(ContractorBase):
    id: uuid.UUID
    documents: List[str] = []
    created_by: uuid.UUID
    created_at: Optional[datetime] = None
    creator_name: str
    document_urls: Dict[str, Optional[str]] = {}

    class Config:
        from_attributes = True


class ContractorStats(BaseModel):
    total: int
    active: int
    inactive: int
    by_category: Dict[str, int]
    by_rating: Dict[str, int]
