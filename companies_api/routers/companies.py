from fastapi import APIRouter, Body, Depends, Request, status
from typing import Any
import logging

from ..database import convert_id, get_company_repository
from ..models.companies import (
    ApiResponse,
    CompanyEnvelope,
    CompanyListEnvelope,
    CompanyResponse,
    CompanyStatsEnvelope,
    Pagination,
)
from ..repositories.company_repository import CompanyRepository
from ..services.company_service import CompanyService

router = APIRouter()
logger = logging.getLogger(__name__)


def get_company_service(
    request: Request,
    repository: CompanyRepository = Depends(get_company_repository),
) -> CompanyService:
    return CompanyService(repository, search_mode=request.app.state.settings.search_mode)


def _to_response(document: dict) -> CompanyResponse:
    return CompanyResponse.model_validate(convert_id(document))


@router.get("/companies/stats/overview", response_model=CompanyStatsEnvelope, response_model_exclude_unset=True)
async def get_stats_overview(service: CompanyService = Depends(get_company_service)):
    """
    Company statistics: total count plus counts grouped by industry and by
    location, each sorted by count descending.
    """
    return CompanyStatsEnvelope(success=True, data=await service.stats_overview())


@router.get("/companies", response_model=CompanyListEnvelope, response_model_exclude_none=True)
async def get_companies(
    request: Request,
    service: CompanyService = Depends(get_company_service),
):
    """
    List companies with optional filters and pagination.

    Query parameters (all optional, all read leniently):
    search, name, industry, location, minEmployees, maxEmployees, minRevenue,
    maxRevenue, founded, sort, page (default 1), limit (default 10).

    Invalid numeric values are ignored rather than rejected.
    """
    result = await service.list_companies(request.query_params)
    companies = [_to_response(item) for item in result.items]
    return CompanyListEnvelope(
        count=len(companies),
        data=companies,
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            pages=result.pages,
        ),
    )


@router.get("/companies/{company_id}", response_model=CompanyEnvelope, response_model_exclude_none=True)
async def get_company(company_id: str, service: CompanyService = Depends(get_company_service)):
    """Get a company by ID. Unknown or malformed IDs return 404."""
    company = await service.get_company(company_id)
    return CompanyEnvelope(data=_to_response(company))


@router.post(
    "/companies",
    response_model=CompanyEnvelope,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_company(
    payload: Any = Body(...),
    service: CompanyService = Depends(get_company_service),
):
    """
    Create a company.

    Requires name, industry, location, employeeCount and founded.
    """
    company = await service.create_company(payload)
    return CompanyEnvelope(message="Company created successfully", data=_to_response(company))


@router.put("/companies/{company_id}", response_model=CompanyEnvelope, response_model_exclude_none=True)
async def update_company(
    company_id: str,
    payload: Any = Body(...),
    service: CompanyService = Depends(get_company_service),
):
    """
    Partially update a company. Fields not supplied are left unchanged; the
    merged record must still satisfy the create rules.
    """
    company = await service.update_company(company_id, payload)
    return CompanyEnvelope(message="Company updated successfully", data=_to_response(company))


@router.delete("/companies/{company_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_company(company_id: str, service: CompanyService = Depends(get_company_service)):
    """Delete a company by ID."""
    await service.delete_company(company_id)
    return ApiResponse(message="Company deleted successfully")
