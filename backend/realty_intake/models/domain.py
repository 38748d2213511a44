# /realty_intake/models/domain.py

from typing import Any, Optional
from pydantic import BaseModel

# This file defines the value objects passed between the webhook layer,
# the conversation engine and the record store.


class NormalizedInput(BaseModel):
    actor_id: str
    text: str = ""
    selection_id: Optional[str] = None
    message_id: Optional[str] = None
    message_type: str = "unknown"

    @property
    def is_structured(self) -> bool:
        return self.selection_id is not None

    @property
    def chosen(self) -> str:
        """Routing token: the structured reply id, else the upper-cased text."""
        return self.selection_id if self.selection_id is not None else self.text.upper()


class SubmissionResult(BaseModel):
    ok: bool
    id: Optional[str] = None
    error: Any = None

    @classmethod
    def success(cls, record_id: Optional[str]) -> "SubmissionResult":
        return cls(ok=True, id=record_id)

    @classmethod
    def failure(cls, error: Any) -> "SubmissionResult":
        return cls(ok=False, error=error)
