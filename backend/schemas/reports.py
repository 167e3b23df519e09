# schemas/reports.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# Pagination metadata shared by every paginated endpoint
class PageMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    has_next_page: bool = Field(alias="hasNextPage")
    next_page_url: Optional[str] = Field(default=None, alias="nextPageUrl")


# Report rows differ per report kind, so they stay plain dicts
class ReportPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    paginated_data: List[Dict[str, Any]] = Field(alias="paginatedData")
    meta: PageMeta


class GlobalCaseInfo(BaseModel):
    total_money: float
    total_sell: float
    total_expense: float
    remain_money: float


class PrintResult(BaseModel):
    data: str
    report_print_modal: bool
