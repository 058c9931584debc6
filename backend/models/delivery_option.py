from pydantic import BaseModel, ConfigDict
from typing import Optional


class DeliveryOptionFields(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    name: Optional[str] = None
    duration: Optional[str] = None     # e.g. "3-5 business days"
    price: Optional[float] = None      # dollars
