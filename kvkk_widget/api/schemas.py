"""
Schemas for the cari directory KVKK endpoints.

Field names follow the wire format through aliases; Python code uses the
snake_case attribute names.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class ConsentRecord(BaseModel):
    """
    A customer's KVKK consent record.

    `code` is assigned by the service and is absent only for records that
    have not been created yet.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    code: Optional[str] = Field(default=None, alias="cariKodu")
    full_name: str = Field(alias="cariIsim")
    phone: str = Field(alias="cariTelefon")
    permitted: bool = Field(default=False, alias="kvkkOnayi")

    @field_validator("permitted", mode="before")
    @classmethod
    def _permitted_from_wire(cls, value: Any) -> Any:
        # The service sends 0/1; anything else is a malformed record
        if isinstance(value, bool):
            return value
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"kvkkOnayi must be 0 or 1, got {value!r}")

    @field_serializer("permitted")
    def _permitted_to_wire(self, value: bool) -> int:
        return 1 if value else 0

    @property
    def is_persisted(self) -> bool:
        return bool(self.code)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the POST body; `cariKodu` is omitted when unset."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ConsentNotFound(BaseModel):
    """
    Lookup outcome when the service reports no record for a phone number.

    This is a regular result, not an error.
    """

    description: str = ""
    message: str = ""

    @property
    def text(self) -> str:
        return self.description or self.message or "Bu numaraya ait bir kayıt yok."


class KvkkSuccessResponse(BaseModel):
    status: bool = True
    cari: ConsentRecord


class KvkkErrorResponse(BaseModel):
    status: bool = False
    description: str = ""
    message: str = ""
