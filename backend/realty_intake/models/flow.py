# /realty_intake/models/flow.py

from enum import Enum
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, ConfigDict


class FlowName(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    RENT = "RENT"


class CaptureRule(str, Enum):
    """How a stage turns the actor's reply into an answer value."""
    VERBATIM = "verbatim"   # store the display text as-is
    OPTIONAL = "optional"   # store the display text unless it is the literal opt-out
    BINARY = "binary"       # store one of two normalized values
    CONSENT = "consent"     # terminal checkpoint, nothing stored by the stage itself


class Choice(BaseModel):
    """A fixed reply option rendered as a button or list row."""
    id: str
    title: str

    model_config = ConfigDict(frozen=True)


class BinaryChoice(BaseModel):
    """
    Maps a reply onto one of two values.

    The reply counts as positive when the chosen token is one of
    `positive_tokens`, or when the display text starts with `text_prefix`
    or contains `text_contains` (both compared case-insensitively).
    """
    positive_tokens: List[str]
    positive_value: str
    negative_value: str
    text_prefix: Optional[str] = None
    text_contains: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class StageDefinition(BaseModel):
    """
    One question-step of a flow. PURE DATA: the engine interprets it.
    """
    name: str = Field(..., description="Stage identifier, unique within a flow")
    prompt: str = Field(..., description="Text sent when the stage is entered")
    choices: List[Choice] = Field(default_factory=list, description="Fixed replies; empty means free text")
    field: Optional[str] = Field(default=None, description="Answer field populated by the reply")
    capture: CaptureRule = CaptureRule.VERBATIM
    binary: Optional[BinaryChoice] = None
    opt_out: Optional[str] = Field(default=None, description="Literal that skips an OPTIONAL capture")
    next_stage: Optional[str] = Field(default=None, description="Successor stage; None only for consent")

    model_config = ConfigDict(frozen=True)


class FlowDefinition(BaseModel):
    """A questionnaire: ordered stages plus the messages for its terminal outcomes."""
    name: FlowName
    label: str
    keywords: List[str]
    initial_stage: str
    stages: Dict[str, StageDefinition]
    lead_saved: str
    lead_failed: str
    consent_declined: str

    model_config = ConfigDict(frozen=True)

    def stage(self, name: str) -> StageDefinition:
        return self.stages[name]

    def bound_fields(self) -> List[str]:
        return [s.field for s in self.stages.values() if s.field]
