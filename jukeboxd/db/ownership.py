"""Tagged ownership state for content rows and activity events.

A rating, review or activity either belongs to a user or has been
anonymized by account deletion. Readers receive one of the two tags and
must handle both; there is no bare nullable owner id in read records.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class OwnedBy(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["owned"] = "owned"
    user_id: UUID


class Anonymized(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["anonymized"] = "anonymized"


Ownership = Annotated[Union[OwnedBy, Anonymized], Field(discriminator="kind")]

ANONYMIZED = Anonymized()


def ownership_of(user_id: UUID | None) -> OwnedBy | Anonymized:
    """Map a nullable owner column onto the tagged state."""
    if user_id is None:
        return ANONYMIZED
    return OwnedBy(user_id=user_id)
