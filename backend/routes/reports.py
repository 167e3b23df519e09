# routes/reports.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.reports import GlobalCaseInfo, PrintResult, ReportPage
from services.documents import DocumentService
from services.filters import ReportFilters
from services.reports import ReportService
from utils.audit import client_ip, write_log
from utils.http_errors import http_errors
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/report", tags=["Reports"])


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)


def get_document_service(db: Session = Depends(get_db)) -> DocumentService:
    return DocumentService(db)


# Wspólne parametry filtrów (nazwy zgodne z frontendem)
def report_filters(
    from_: Optional[str] = Query(None, alias="from", description="epoch ms"),
    to: Optional[str] = Query(None, description="epoch ms"),
    user_filter: Optional[str] = Query(None, alias="userFilter"),
    type_filter: Optional[str] = Query(None, alias="filter"),
    color: Optional[str] = Query(None),
    car_model: Optional[str] = Query(None, alias="carModel"),
    car_type: Optional[str] = Query(None, alias="carType"),
    service: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
) -> ReportFilters:
    return ReportFilters(
        from_=from_, to=to, user=user_filter, type=type_filter, color=color,
        car_model=car_model, car_type=car_type, service=service, search=search,
    )


# -----------------------------
# Stan kasy (przed /{kind})
# -----------------------------
@router.get("/global_case", response_model=GlobalCaseInfo)
def global_case(
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    reports: ReportService = Depends(get_report_service),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        return reports.global_case_info(from_, to)


@router.get("/{kind}", response_model=ReportPage)
def report_list(
    kind: str,
    page: int = Query(1),
    limit: int = Query(10),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    day: Optional[int] = Query(None),
    filters: ReportFilters = Depends(report_filters),
    reports: ReportService = Depends(get_report_service),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        return reports.list(kind, page, limit, filters, year=year, month=month, day=day)


@router.get("/{kind}/information")
def report_information(
    kind: str,
    filters: ReportFilters = Depends(report_filters),
    reports: ReportService = Depends(get_report_service),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        return reports.info(kind, filters)


@router.get("/{kind}/search", response_model=List[dict])
def report_search(
    kind: str,
    search: Optional[str] = Query(None),
    reports: ReportService = Depends(get_report_service),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        return reports.search(kind, search)


@router.get("/{kind}/print", responses={200: {"content": {"application/pdf": {}}}})
def report_print(
    kind: str,
    request: Request,
    filters: ReportFilters = Depends(report_filters),
    documents: DocumentService = Depends(get_document_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        result = documents.print_report(kind, filters, current_user.id)

    write_log(
        db,
        user_id=current_user.id,
        action="REPORT_PRINT",
        resource="report",
        resource_id=kind,
        status="SUCCESS",
        ip=client_ip(request),
        meta={"kind": kind, "filters": filters.as_meta(), "preview": result["report_print_modal"]},
    )
    return pdf_or_status(result)


def pdf_or_status(result: dict):
    # Podgląd -> surowy PDF, wydruk -> {"data": "success", ...}
    if isinstance(result["data"], (bytes, bytearray)):
        return Response(
            content=bytes(result["data"]),
            media_type="application/pdf",
            headers={"X-Report-Print-Modal": "true"},
        )
    return PrintResult(**result)
