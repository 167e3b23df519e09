# routes/sell.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from routes.reports import get_document_service, pdf_or_status
from schemas.sell import (
    AddItemToSell, ItemQuantityOut, RestoreSell, SellItemOut, SellItemPage, SellItemRow,
    SellOut, SellPage, SellRow, UpdateItemQuantity, UpdateSellDiscount,
)
from services.documents import DocumentService
from services.sell import SellService
from utils.audit import client_ip, write_log
from utils.http_errors import http_errors
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/sell", tags=["Sell"])


def get_sell_service(db: Session = Depends(get_db)) -> SellService:
    return SellService(db)


def _audit(db: Session, request: Request, user: User, action: str, meta: dict):
    write_log(
        db,
        user_id=user.id,
        action=action,
        resource="sell",
        resource_id=meta.get("sell_id"),
        status="SUCCESS",
        ip=client_ip(request),
        meta=meta,
    )


# -----------------------------
# Listy i wyszukiwanie
# -----------------------------
@router.get("", response_model=SellPage)
def list_sells(
    page: int = Query(1),
    limit: int = Query(10),
    user_filter: Optional[str] = Query(None, alias="userFilter"),
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    sells: SellService = Depends(get_sell_service),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        return sells.list_sells(page, limit, user_filter, from_, to)


@router.get("/deleted", response_model=SellPage)
def list_deleted_sells(
    page: int = Query(1),
    limit: int = Query(10),
    user_filter: Optional[str] = Query(None, alias="userFilter"),
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    sells: SellService = Depends(get_sell_service),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        return sells.list_sells(page, limit, user_filter, from_, to, deleted=True)


@router.get("/search", response_model=List[SellRow])
def search_sells(
    search: str = Query(""),
    sells: SellService = Depends(get_sell_service),
    current_user: User = Depends(get_current_user),
):
    return sells.search_sells(search)


@router.get("/deleted_search", response_model=List[SellRow])
def search_deleted_sells(
    search: str = Query(""),
    sells: SellService = Depends(get_sell_service),
    current_user: User = Depends(get_current_user),
):
    return sells.search_sells(search, deleted=True)


@router.get("/self_deleted_items", response_model=SellItemPage)
def list_self_deleted_items(
    page: int = Query(1),
    limit: int = Query(10),
    user_filter: Optional[str] = Query(None, alias="userFilter"),
    sells: SellService = Depends(get_sell_service),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        return sells.self_deleted_items(page, limit, user_filter)


@router.get("/self_deleted_items/search", response_model=List[SellItemRow])
def search_self_deleted_items(
    search: str = Query(""),
    sells: SellService = Depends(get_sell_service),
    current_user: User = Depends(get_current_user),
):
    return sells.search_self_deleted_items(search)


@router.put("/self_deleted_items/{item_id}/restore")
def restore_self_deleted_item(
    item_id: int,
    request: Request,
    sell_id: Optional[int] = Query(None),
    sells: SellService = Depends(get_sell_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        restored = sells.restore_self_deleted_line(item_id, sell_id)
    _audit(db, request, current_user, "SELL_ITEM_RESTORE", {"item_id": item_id, "sell_id": sell_id})
    return {"item_id": restored}


@router.get("/item_quantity/{item_id}", response_model=ItemQuantityOut)
def get_item_quantity(
    item_id: int,
    sells: SellService = Depends(get_sell_service),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        return sells.item_quantity(item_id)


# -----------------------------
# Sprzedaż
# -----------------------------
@router.post("", response_model=SellOut, status_code=status.HTTP_201_CREATED)
def create_sell(
    request: Request,
    sells: SellService = Depends(get_sell_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        sell = sells.create_sale(current_user.id)
    _audit(db, request, current_user, "SELL_CREATE", {"sell_id": sell.id})
    return sell


@router.get("/{sell_id}", response_model=SellRow)
def get_sell(
    sell_id: int,
    sells: SellService = Depends(get_sell_service),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        return sells.find_sell(sell_id)


@router.put("/{sell_id}", response_model=SellOut)
def update_sell_discount(
    sell_id: int,
    payload: UpdateSellDiscount,
    request: Request,
    sells: SellService = Depends(get_sell_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        sell = sells.update_discount(sell_id, payload.discount, current_user.id)
    _audit(db, request, current_user, "SELL_DISCOUNT", {"sell_id": sell_id, "discount": payload.discount})
    return sell


@router.delete("/{sell_id}")
def delete_sell(
    sell_id: int,
    request: Request,
    sells: SellService = Depends(get_sell_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        sells.delete_sale(sell_id, current_user.id)
    _audit(db, request, current_user, "SELL_DELETE", {"sell_id": sell_id})
    return {"id": sell_id}


@router.put("/{sell_id}/restore")
def restore_sell(
    sell_id: int,
    payload: RestoreSell,
    request: Request,
    sells: SellService = Depends(get_sell_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        sells.restore_sale(sell_id, payload.item_ids, current_user.id)
    _audit(db, request, current_user, "SELL_RESTORE", {"sell_id": sell_id, "item_ids": payload.item_ids})
    return {"id": sell_id}


@router.get("/{sell_id}/print")
def print_receipt(
    sell_id: int,
    request: Request,
    documents: DocumentService = Depends(get_document_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        result = documents.print_receipt(sell_id, current_user.id)
    _audit(db, request, current_user, "SELL_PRINT", {"sell_id": sell_id, "preview": result["report_print_modal"]})
    return pdf_or_status(result)


# -----------------------------
# Linie sprzedaży
# -----------------------------
@router.get("/{sell_id}/items", response_model=List[SellItemRow])
def get_sell_items(
    sell_id: int,
    sells: SellService = Depends(get_sell_service),
    current_user: User = Depends(get_current_user),
):
    return sells.sell_items(sell_id)


@router.get("/{sell_id}/deleted_items", response_model=List[SellItemRow])
def get_deleted_sell_items(
    sell_id: int,
    user_filter: Optional[str] = Query(None, alias="userFilter"),
    sells: SellService = Depends(get_sell_service),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        return sells.deleted_sell_items(sell_id, user_filter)


# sell_id = 0 zakłada nową sprzedaż
@router.post("/{sell_id}/items", response_model=SellItemOut, status_code=status.HTTP_201_CREATED)
def add_item_to_sell(
    sell_id: int,
    payload: AddItemToSell,
    request: Request,
    sells: SellService = Depends(get_sell_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        line = sells.add_item(sell_id, payload.item_id, current_user.id, barcode=payload.barcode)
    _audit(db, request, current_user, "SELL_ADD_ITEM",
           {"sell_id": line.sell_id, "item_id": line.item_id, "quantity": line.quantity})
    return line


@router.put("/{sell_id}/items/{item_id}", response_model=SellItemOut)
def update_item_in_sell(
    sell_id: int,
    item_id: int,
    payload: UpdateItemQuantity,
    request: Request,
    sells: SellService = Depends(get_sell_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        line = sells.update_item_quantity(sell_id, item_id, payload.quantity, current_user.id)
    _audit(db, request, current_user, "SELL_SET_QUANTITY",
           {"sell_id": sell_id, "item_id": item_id, "quantity": line.quantity})
    return line


@router.put("/{sell_id}/items/{item_id}/increase", response_model=SellItemOut)
def increase_item_in_sell(
    sell_id: int,
    item_id: int,
    request: Request,
    sells: SellService = Depends(get_sell_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        line = sells.increase(sell_id, item_id, current_user.id)
    _audit(db, request, current_user, "SELL_INCREASE",
           {"sell_id": sell_id, "item_id": item_id, "quantity": line.quantity})
    return line


@router.put("/{sell_id}/items/{item_id}/decrease", response_model=SellItemOut)
def decrease_item_in_sell(
    sell_id: int,
    item_id: int,
    request: Request,
    sells: SellService = Depends(get_sell_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        line = sells.decrease(sell_id, item_id, current_user.id)
    _audit(db, request, current_user, "SELL_DECREASE",
           {"sell_id": sell_id, "item_id": item_id, "quantity": line.quantity})
    return line


@router.delete("/{sell_id}/items/{item_id}")
def remove_item_from_sell(
    sell_id: int,
    item_id: int,
    request: Request,
    sells: SellService = Depends(get_sell_service),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with http_errors():
        sells.remove_item(sell_id, item_id)
    _audit(db, request, current_user, "SELL_REMOVE_ITEM", {"sell_id": sell_id, "item_id": item_id})
    return {"item_id": item_id}
