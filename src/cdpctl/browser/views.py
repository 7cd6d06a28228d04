"""Views for targets and their lifecycle."""

from enum import Enum

from cdp_use.cdp.target import SessionID, TargetID
from pydantic import BaseModel, ConfigDict, Field


class TargetState(str, Enum):
    """Lifecycle of a target handle."""

    CREATED = 'created'
    ATTACHED = 'attached'
    ACTIVE = 'active'
    CLOSED = 'closed'


class Target(BaseModel):
    """Lifecycle record of one browser target, shared by every Page copy of it."""

    model_config = ConfigDict(validate_assignment=True)

    target_id: TargetID
    session_id: SessionID | None = None
    state: TargetState = TargetState.CREATED

    @property
    def closed(self) -> bool:
        return self.state == TargetState.CLOSED


class TargetInfo(BaseModel):
    """Entry of Target.getTargets / Target.getTargetInfo."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    target_id: TargetID = Field(alias='targetId')
    type: str = 'page'
    title: str = ''
    url: str = ''
    attached: bool = False
