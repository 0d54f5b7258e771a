from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VerificationData(BaseModel):
    """Base shape of the client-supplied proof; unknown keys are kept."""

    model_config = ConfigDict(extra="allow")


class PurchaseVerification(VerificationData):
    # seule la présence compte ; amount & co passent en extra, sans contrôle
    purchaseId: Any

    @field_validator("purchaseId")
    @classmethod
    def purchase_id_present(cls, v):
        if not v:
            raise ValueError("purchaseId is required")
        return v


class InviteFriendsVerification(VerificationData):
    invitedUsers: List[Any] = Field(min_length=1)
