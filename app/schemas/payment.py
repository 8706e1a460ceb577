# app/schemas/payment.py
from datetime import date, time
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Payer(BaseModel):
    email: Optional[str] = None


class ChargeRequest(BaseModel):
    # legacy camelCase / spanish keys are still sent by the web client
    model_config = ConfigDict(populate_by_name=True)

    transaction_amount: int = Field(..., description="Gross amount in minor currency units")
    token: str
    payment_method_id: str
    installments: int = Field(default=1, ge=1)
    payer: Optional[Payer] = None

    talent_id: str = Field(..., min_length=1, validation_alias=AliasChoices("talent_id", "talentId"))
    client_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("client_id", "clienteId"))
    service_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("service_date", "fecha_servicio"))
    service_time: Optional[time] = Field(default=None, validation_alias=AliasChoices("service_time", "hora_servicio"))


class ChargeResponse(BaseModel):
    status: str
    id: str
