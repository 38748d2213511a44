# /realty_intake/models/conversation.py

from datetime import datetime, timedelta
from typing import Optional, Dict
from pydantic import BaseModel, Field

from realty_intake.models.flow import FlowName


class Session(BaseModel):
    """
    Conversation state for a single actor.

    `flow` is set once when the actor picks a questionnaire and stays fixed
    until the session is removed. `answers` only grows while the flow advances.
    """
    actor_id: str = Field(..., description="Phone-like identity of the chat user")
    flow: Optional[FlowName] = Field(default=None, description="Active questionnaire, None while idle")
    stage: Optional[str] = Field(default=None, description="Current stage of the active flow")
    answers: Dict[str, str] = Field(default_factory=dict, description="Captured field values")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    last_activity: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_idle(self) -> bool:
        return self.flow is None

    def start(self, flow: FlowName, stage: str, seed: Dict[str, str]):
        if self.flow is not None:
            raise ValueError(f"Session for {self.actor_id} already runs flow {self.flow.value}")
        self.flow = flow
        self.stage = stage
        self.answers = dict(seed)

    def touch(self, now: Optional[datetime] = None):
        self.last_activity = now or datetime.utcnow()

    def idle_for(self, now: Optional[datetime] = None) -> timedelta:
        return (now or datetime.utcnow()) - self.last_activity
