# app/schemas/webhook.py
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator


class WebhookData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Union[str, int, None]):
        # the processor sends numeric ids in some notification versions
        if v is None:
            return None
        return str(v)


class WebhookEvent(BaseModel):
    """Notification body. Anything beyond type and data.id is never trusted."""
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    data: Optional[WebhookData] = None

    @property
    def payment_id(self) -> Optional[str]:
        return self.data.id if self.data else None
