# schemas/sell.py
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from schemas.reports import PageMeta


# Sale header returned after mutations
class SellOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: Optional[datetime] = None
    discount: float = 0
    deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Sale header with operator usernames (list / search / find)
class SellRow(BaseModel):
    id: int
    date: Optional[datetime] = None
    discount: float = 0
    deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


class SellPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    paginated_data: List[SellRow] = Field(alias="paginatedData")
    meta: PageMeta


# Single line of a sale
class SellItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sell_id: int
    item_id: int
    quantity: int
    item_purchase_price: float
    item_sell_price: float
    deleted: bool = False
    self_deleted: bool = False


class SellItemRow(SellItemOut):
    item_name: Optional[str] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


class SellItemPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    paginated_data: List[SellItemRow] = Field(alias="paginatedData")
    meta: PageMeta


# Request schemas
class AddItemToSell(BaseModel):
    # id towaru albo kod kreskowy, gdy barcode=True
    item_id: Union[int, str]
    barcode: bool = False


class UpdateItemQuantity(BaseModel):
    quantity: int = Field(ge=0)


class UpdateSellDiscount(BaseModel):
    discount: float = Field(ge=0, allow_inf_nan=False)


class RestoreSell(BaseModel):
    item_ids: List[int] = []


class ItemQuantityOut(BaseModel):
    item_id: int
    quantity: int
    sold: int
    actual_quantity: int
