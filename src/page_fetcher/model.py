# src/page_fetcher/model.py (Retrieval Layer)
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class WireModel(BaseModel):
    """Base for payloads exchanged with the proxying service (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ProxyResponse(WireModel):
    """Body of GET /api/proxy."""
    success: bool
    html: Optional[str] = None
    status: Optional[int] = None
    status_text: Optional[str] = None
    url: Optional[str] = None
    content_length: Optional[int] = None
    error: Optional[str] = None
    code: Optional[str] = None


class RedirectHop(BaseModel):
    source: str
    target: str
    status: int


class ValidationResult(WireModel):
    """Body of GET /api/validate."""
    valid: bool
    reachable: bool
    url: str
    status: Optional[int] = None
    status_text: Optional[str] = None
    method: Optional[str] = None
    note: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
    redirect_chain: List[RedirectHop] = Field(default_factory=list)

    @property
    def status_hint(self) -> Optional[str]:
        """Human readable summary for display next to the validity flags."""
        if self.note:
            return self.note
        if self.error:
            return self.error
        if self.status is not None:
            return f"{self.status} {self.status_text or ''}".strip()
        return None


class HealthStatus(WireModel):
    status: str
    timestamp: str
    message: str
    fetch_available: bool
