# backend/services/documents.py
"""
Składanie dokumentów do druku (raporty i paragony) i wysyłka do drukarki.

report_print_modal=True  -> zwracamy PDF do podglądu
report_print_modal=False -> PDF trafia do aktywnej drukarki; gdy zadanie
                            nie powstało, zwracamy PDF jak przy podglądzie
"""
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from models.app_config import Printer
from models.users import User
from services.app_config import ConfigLoader, db_config_loader
from services.errors import ValidationError, operation_boundary
from services.filters import ReportFilters
from services.printing import LpPrintDispatcher, PrintDispatcher
from services.reports import ReportService
from services.sell import SellService
from utils.formatting import format_date_ymdhm, format_money
from utils.pdf import ReportDocument, render_report_pdf

logger = logging.getLogger(__name__)

SummaryValue = Union[str, Callable[[dict], object]]


@dataclass
class ReportLayout:
    title: str
    summary: List[Tuple[str, SummaryValue]] = field(default_factory=list)
    # (nagłówek, klucz wiersza, rodzaj: text | money | number | date)
    columns: List[Tuple[str, str, str]] = field(default_factory=list)


_SELL_COLUMNS = [
    ("#", "id", "text"),
    ("Date", "created_at", "date"),
    ("Created by", "created_by", "text"),
    ("Total", "total_sell_price", "money"),
    ("Discount", "discount", "money"),
]

_ITEM_COLUMNS = [
    ("Sell", "sell_id", "text"),
    ("Item", "item_name", "text"),
    ("Barcode", "item_barcode", "text"),
    ("Qty", "quantity", "number"),
    ("Price", "item_sell_price", "money"),
    ("Date", "created_at", "date"),
]

_KOGA_COLUMNS = [
    ("#", "id", "text"),
    ("Item", "name", "text"),
    ("Barcode", "barcode", "text"),
    ("Type", "type_name", "text"),
    ("Quantity", "quantity", "number"),
    ("Sold", "sell_quantity", "number"),
    ("Remaining", "remaining", "number"),
    ("Purchase", "item_purchase_price", "money"),
]

_KOGA_SUMMARY = [
    ("Items", "total_count"),
    ("Quantity", "total_item_quantity"),
    ("Sold quantity", "total_sell_quantity"),
    ("Sold value", "total_sell_price"),
    ("Stock cost", "total_cost"),
]

REPORT_LAYOUTS = {
    "sell": ReportLayout(
        title="Sell report",
        summary=[
            ("Sells", "sell_count"),
            ("Total", "total_sell_price"),
            ("Discount", "total_sell_discount"),
            ("After discount", lambda info: (info.get("total_sell_price") or 0) - (info.get("total_sell_discount") or 0)),
        ],
        columns=_SELL_COLUMNS,
    ),
    "bill_profit": ReportLayout(
        title="Bill profit report",
        summary=[
            ("Sells", "sell_count"),
            ("Total", "total_sell_price"),
            ("Purchase", "total_purchase_price"),
            ("Profit", "total_profit"),
        ],
        columns=_SELL_COLUMNS + [("Purchase", "total_purchase_price", "money")],
    ),
    "item": ReportLayout(
        title="Sold items report",
        summary=[
            ("Lines", "total_count"),
            ("Sold quantity", "total_sell"),
            ("Unit prices", "total_sell_price"),
            ("Total", "total_price"),
        ],
        columns=_ITEM_COLUMNS,
    ),
    "item_profit": ReportLayout(
        title="Item profit report",
        summary=[
            ("Lines", "total_count"),
            ("Quantity", "total_quantity"),
            ("Cost", "total_cost"),
            ("Single profit", "total_single_profit"),
            ("Profit", "total_profit"),
        ],
        columns=_ITEM_COLUMNS + [("Profit", "profit", "money")],
    ),
    "koga_all": ReportLayout(title="Stock report", summary=_KOGA_SUMMARY, columns=_KOGA_COLUMNS),
    "koga_null": ReportLayout(title="Exhausted stock report", summary=_KOGA_SUMMARY, columns=_KOGA_COLUMNS),
    "koga_less": ReportLayout(title="Low stock report", summary=_KOGA_SUMMARY, columns=_KOGA_COLUMNS),
    "koga_movement": ReportLayout(
        title="Stock movement report",
        summary=[
            ("Entries", "total_count"),
            ("Quantity", "total_item_quantity"),
            ("Purchase prices", "total_purchase_price"),
            ("Cost", "total_cost"),
        ],
        columns=[
            ("#", "id", "text"),
            ("Item", "item_name", "text"),
            ("Barcode", "item_barcode", "text"),
            ("Qty", "quantity", "number"),
            ("Purchase", "item_purchase_price", "money"),
            ("Operator", "created_by", "text"),
            ("Date", "created_at", "date"),
        ],
    ),
    "expense": ReportLayout(
        title="Expense report",
        summary=[("Expenses", "total_count"), ("Total", "total_price")],
        columns=[
            ("#", "id", "text"),
            ("Type", "type_name", "text"),
            ("Price", "price", "money"),
            ("Note", "note", "text"),
            ("Date", "created_at", "date"),
        ],
    ),
    "case": ReportLayout(
        title="Cashbox report",
        summary=[("Total", "total_sell_price"), ("Quantity", "total_quantity")],
        columns=[
            ("Operator", "created_by", "text"),
            ("Sold", "sold", "number"),
            ("Revenue", "sold_price", "money"),
        ],
    ),
    "reservation": ReportLayout(
        title="Reservation report",
        summary=[("Reservations", "reservation_count"), ("Total", "total_price")],
        columns=[
            ("#", "id", "text"),
            ("Customer", "customer_first_name", "text"),
            ("Service", "service_name", "text"),
            ("Car", "car_model_name", "text"),
            ("Color", "color_name", "text"),
            ("Price", "price", "money"),
            ("Date", "date_time", "date"),
        ],
    ),
}


def _format_cell(value, kind: str) -> str:
    if kind == "money":
        return format_money(value)
    if kind == "number":
        # Ilości: całe liczby bez separatora tysięcy
        if value is None or value == "":
            return "0"
        number = float(value)
        return str(int(number)) if number.is_integer() else format_money(number)
    if kind == "date":
        return format_date_ymdhm(value) if isinstance(value, datetime) else str(value or "")
    return "" if value is None else str(value)


def build_report_document(layout: ReportLayout, data: dict, printed_by: str = "") -> ReportDocument:
    info = data.get("info") or {}
    summary = []
    for label, source in layout.summary:
        value = source(info) if callable(source) else info.get(source)
        summary.append((label, format_money(value)))
    return ReportDocument(
        title=layout.title,
        printed_by=printed_by,
        printed_at=format_date_ymdhm(datetime.now()),
        summary=summary,
        headers=[header for header, _, _ in layout.columns],
        rows=[[_format_cell(row.get(key), kind) for _, key, kind in layout.columns]
              for row in data.get("rows", [])],
    )


def build_receipt_document(receipt: dict, printed_by: str = "") -> ReportDocument:
    sell = receipt["sell"]
    return ReportDocument(
        title=f"Receipt #{sell['id']}",
        printed_by=printed_by,
        printed_at=format_date_ymdhm(datetime.now()),
        summary=[
            ("Total", format_money(receipt["total_sell_price"])),
            ("Discount", format_money(sell.get("discount"))),
            ("To pay", format_money(receipt["total_after_discount"])),
        ],
        headers=["Item", "Qty", "Price", "Total"],
        rows=[
            [
                str(line.get("item_name") or ""),
                format_money(line["quantity"]),
                format_money(line["item_sell_price"]),
                format_money((line["item_sell_price"] or 0) * (line["quantity"] or 0)),
            ]
            for line in receipt["sell_items"]
        ],
    )


class DocumentService:
    def __init__(self, db: Session, report_service: Optional[ReportService] = None,
                 sell_service: Optional[SellService] = None,
                 renderer: Callable[[ReportDocument], bytes] = render_report_pdf,
                 dispatcher: Optional[PrintDispatcher] = None,
                 config_loader: Optional[ConfigLoader] = None):
        self.db = db
        self.config_loader = config_loader or db_config_loader(db)
        self.report_service = report_service or ReportService(db, config_loader=self.config_loader)
        self.sell_service = sell_service or SellService(db)
        self.renderer = renderer
        self.dispatcher = dispatcher or LpPrintDispatcher()

    def _active_printer(self) -> Printer:
        printer = self.db.query(Printer).filter(Printer.active == True).first()  # noqa: E712
        if printer is None:
            raise ValidationError("Please activate a printer in settings")
        return printer

    def _operator_name(self, operator_id: Optional[int]) -> str:
        if operator_id is None:
            return ""
        user = self.db.query(User).filter(User.id == operator_id, User.deleted == False).first()  # noqa: E712
        return user.username if user else ""

    def print_report(self, name: str, filters: Optional[ReportFilters] = None,
                     operator_id: Optional[int] = None) -> dict:
        with operation_boundary(self.db, commit=False, name=f"print_report:{name}"):
            layout = REPORT_LAYOUTS.get(name)
            if layout is None:
                raise ValidationError(f"Unknown report: {name}")
            printer = self._active_printer()
            data = self.report_service.print_data(name, filters)
            document = build_report_document(layout, data, self._operator_name(operator_id))
            return self._deliver(document, printer)

    def print_receipt(self, sell_id: int, operator_id: Optional[int] = None) -> dict:
        with operation_boundary(self.db, commit=False, name="print_receipt"):
            printer = self._active_printer()
            receipt = self.sell_service.receipt_data(sell_id)
            document = build_receipt_document(receipt, self._operator_name(operator_id))
            return self._deliver(document, printer)

    def _deliver(self, document: ReportDocument, printer: Printer) -> dict:
        config = self.config_loader()
        pdf = self.renderer(document)

        if config.report_print_modal:
            return {"data": pdf, "report_print_modal": True}

        handle = tempfile.NamedTemporaryFile(suffix=".pdf", delete=False)
        try:
            with handle:
                handle.write(pdf)
            job_id = self.dispatcher.print(handle.name, printer.name)
        finally:
            os.unlink(handle.name)

        if job_id is None:
            logger.warning("no print job for %s, returning preview", document.title)
            return {"data": pdf, "report_print_modal": True}

        logger.info("document %s sent to %s as job %s", document.title, printer.name, job_id)
        return {"data": "success", "report_print_modal": False}
