"""Pydantic v2 schemas for vendor address sync, retirement sweep, and notification queue."""

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, field_validator

from address_sync.lib.vendor_sync import ChangeDescriptor
from address_sync.lib.vendor_sync.types import STATUS_RETIRED

BinaryFlag = Annotated[int, Field(ge=0, le=1, description="0 or 1")]


class SyncAddressRequest(BaseModel):
    """Vendor address payload pushed by the vendor system."""

    vtoken: str = Field(min_length=1, max_length=255, description="Vendor token shared by records of one address")
    state: str | None = Field(
        default=None,
        max_length=50,
        description="Region code; required only when the token is new",
    )
    address: str = Field(min_length=1, description="Address line")
    status: BinaryFlag = Field(description="1 = active, 0 = inactive")
    is_default: BinaryFlag = Field(description="1 if this is the default address")

    @field_validator("vtoken", "address")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be blank"
            raise ValueError(msg)
        return v

    @field_validator("state")
    @classmethod
    def blank_state_is_missing(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class VendorAddressResponse(BaseModel):
    """A vendor address record."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    vendor_token: str | None = None
    vendor_id: str | None = None
    region: str
    address: str
    status: int
    is_default: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SyncAddressData(BaseModel):
    """Records touched by one sync call: either one created record or the updated set."""

    created: VendorAddressResponse | None = None
    updated: list[VendorAddressResponse] = Field(default_factory=list)


class SyncAddressResponse(BaseModel):
    """Response envelope for a vendor sync call."""

    success: bool = True
    message: str
    data: SyncAddressData


class RetiredAddressRequest(BaseModel):
    """One retired address descriptor: the record at ``id`` moved from old to new text."""

    id: uuid.UUID
    region: str | None = Field(default=None, max_length=50)
    old_address: str = Field(min_length=1)
    new_address: str = Field(min_length=1)
    status: BinaryFlag = STATUS_RETIRED

    @field_validator("old_address", "new_address")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be blank"
            raise ValueError(msg)
        return v

    def to_descriptor(self) -> ChangeDescriptor:
        """Convert to the library change descriptor."""
        return ChangeDescriptor(
            id=self.id,
            region=self.region,
            old_address=self.old_address,
            new_address=self.new_address,
            status=self.status,
        )


class RetiredSweepRequest(BaseModel):
    """Explicit list of retired addresses to process."""

    retirements: list[RetiredAddressRequest] = Field(default_factory=list)


class RetiredSweepResponse(BaseModel):
    """Aggregate acknowledgment of a retirement sweep.

    Individual item failures are reported only through counts and logs.
    """

    success: bool = True
    message: str
    processed: int
    repaired: int
    skipped: int
    failed: int
    queued: int


class EmailQueueEntryResponse(BaseModel):
    """A queued address change notification."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    user_id: uuid.UUID
    vendor_address_id: uuid.UUID
    old_vendor_address: str
    new_vendor_address: str
    vendor_address_status: int
    is_email_sent: bool
    created_at: datetime
