from pydantic import BaseModel, UUID4
from datetime import datetime


class ShowCreate(BaseModel):
    movie_id: UUID4
    theatre_name: str
    show_datetime: datetime


class Show(BaseModel):
    id: UUID4
    movie_id: UUID4
    theatre_name: str
    show_datetime: datetime

    class Config:
        from_attributes = True


# POST /admin/shows — show plus the seats provisioned for it
class ShowCreateResponse(Show):
    seats_created: int
