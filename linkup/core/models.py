from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from linkup.core.constants import Role


class CurrentUser(BaseModel):
    """
    The account acting on a request: follower, request owner or inbox reader.

    Every ownership check keys on ``id``.  Admin fan-out reads ``users.role``
    from the database, so ``roles`` is informational only.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID
    email: str | None = None
    roles: tuple[Role, ...] = Field(default_factory=tuple)
