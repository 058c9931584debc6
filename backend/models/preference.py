from pydantic import BaseModel


class FavoriteNumberUpdate(BaseModel):
    favorite_number: int
