from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import ClassVar, List, Optional
from datetime import datetime


class CamelModel(BaseModel):
    """Base model exposing camelCase field names on the wire and in MongoDB."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CompanyBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    industry: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    employee_count: int = Field(..., ge=0, description="Number of employees")
    founded: int = Field(..., description="Year the company was founded")
    revenue: Optional[float] = Field(None, ge=0, description="Revenue in millions")
    website: Optional[str] = None
    description: Optional[str] = None


class CompanyCreate(CompanyBase):
    """Model for creating a new company"""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    # Store-managed fields that clients may not set
    IMMUTABLE_FIELDS: ClassVar[frozenset] = frozenset({"_id", "id", "createdAt", "updatedAt"})


class CompanyUpdate(CamelModel):
    """Model for updating a company (partial)"""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    industry: Optional[str] = Field(None, min_length=1, max_length=200)
    location: Optional[str] = Field(None, min_length=1, max_length=200)
    employee_count: Optional[int] = Field(None, ge=0)
    founded: Optional[int] = None
    revenue: Optional[float] = Field(None, ge=0)
    website: Optional[str] = None
    description: Optional[str] = None


class CompanyResponse(CompanyBase):
    """Model for company API responses"""

    id: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class GroupCount(CamelModel):
    key: Optional[str] = None
    count: int


class CompanyStats(CamelModel):
    """Rollup statistics over the whole collection."""

    total_companies: int
    by_industry: List[GroupCount] = Field(default_factory=list)
    by_location: List[GroupCount] = Field(default_factory=list)


class ApiResponse(CamelModel):
    """Common response envelope."""

    success: bool = True
    message: Optional[str] = None
    error: Optional[str] = None


class CompanyEnvelope(ApiResponse):
    data: Optional[CompanyResponse] = None


class CompanyListEnvelope(ApiResponse):
    count: int
    data: List[CompanyResponse] = Field(default_factory=list)
    pagination: Pagination


class CompanyStatsEnvelope(ApiResponse):
    data: CompanyStats
