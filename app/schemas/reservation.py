# app/schemas/reservation.py
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel


class ReservationResponse(BaseModel):
    id: int
    payment_id: str
    client_id: Optional[str]
    talent_id: str
    gross_amount: int
    commission_amount: int
    status: str
    service_date: Optional[date]
    service_time: Optional[time]
    created_at: datetime
    approved_at: Optional[datetime]

    class Config:
        from_attributes = True
