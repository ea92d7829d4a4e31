"""
Host widget runtime bundle.

The ticketing host supplies an authentication token and, when a ticket is
open, the requester's phone number. Only the fields read by the widget are
modelled; anything else the host sends is ignored.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Requester(BaseModel):
    model_config = ConfigDict(extra="ignore")

    phone: Optional[str] = None


class HostContext(BaseModel):
    model_config = ConfigDict(extra="ignore")

    token: Optional[str] = None
    requester: Requester = Field(default_factory=Requester)


class HostBundle(BaseModel):
    """Object handed to the widget by the host runtime."""

    model_config = ConfigDict(extra="ignore")

    context: HostContext = Field(default_factory=HostContext)

    @property
    def token(self) -> Optional[str]:
        return self.context.token or None

    @property
    def requester_phone(self) -> Optional[str]:
        phone = self.context.requester.phone
        return phone.strip() if phone and phone.strip() else None

    @property
    def is_authenticated(self) -> bool:
        """A token must be present before any request is issued."""
        return self.token is not None

    @classmethod
    def from_query(
        cls,
        *,
        token: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> "HostBundle":
        """Build a bundle from page query parameters."""
        return cls(
            context=HostContext(
                token=token,
                requester=Requester(phone=phone),
            )
        )
