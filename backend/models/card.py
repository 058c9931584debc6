from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import date


class CardFields(BaseModel):
    """
    Owner-editable card attributes.

    Every field is optional so the same schema serves create and partial
    update; cross-field rules run on the merged document.
    """

    # NaN / Infinity parse as floats but cannot be serialized back
    model_config = ConfigDict(allow_inf_nan=False)

    # core
    player_name: Optional[str] = None
    team: Optional[str] = None
    position: Optional[str] = None
    jersey_number: Optional[int] = None

    # identification
    manufacturer: Optional[str] = None
    set_name: Optional[str] = None
    card_number: Optional[str] = None
    year: Optional[int] = None
    series: Optional[str] = None

    # variants
    parallel_variant: Optional[str] = None
    serial_number: Optional[str] = None
    rookie_card: Optional[bool] = None
    autographed: Optional[bool] = None
    memorabilia: Optional[bool] = None
    memorabilia_type: Optional[str] = None
    short_print: Optional[bool] = None

    # condition & grading
    condition: Optional[str] = None
    graded: Optional[bool] = None
    grading_company: Optional[str] = None
    grade: Optional[str] = None
    grade_details: Optional[Dict[str, Any]] = None

    # rarity & value
    rarity: Optional[str] = None
    estimated_value: Optional[float] = None
    purchase_price: Optional[float] = None
    last_sold_price: Optional[float] = None
    price_trend: Optional[str] = None

    # physical
    card_size: Optional[str] = None
    card_stock: Optional[str] = None
    foil_treatment: Optional[str] = None

    # images
    front_image_url: Optional[str] = None
    back_image_url: Optional[str] = None
    detail_image_urls: Optional[List[str]] = None

    # marketplace
    for_sale: Optional[bool] = None
    asking_price: Optional[float] = None
    price_negotiable: Optional[bool] = None
    trade_only: Optional[bool] = None

    # acquisition
    acquired_date: Optional[date] = None
    acquired_from: Optional[str] = None
    pack_details: Optional[str] = None

    description: Optional[str] = None
    tags: Optional[List[str]] = None
    player_stats: Optional[Dict[str, Any]] = None


class ToggleSaleRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    asking_price: Optional[float] = Field(None, ge=0)
