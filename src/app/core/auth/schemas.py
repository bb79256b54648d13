"""Claims carried by bearer tokens."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class TokenData(BaseModel):
    """Verified claims of an access token.

    Built from the raw JWT payload: ``sub`` becomes ``user_id``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: UUID = Field(alias="sub")
    email: EmailStr
    exp: datetime
    type: str = "access"
