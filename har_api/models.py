"""
Pydantic models for HAR data and normalized API request records.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional
from enum import Enum


# ============================================================================
# HAR SCHEMA (HTTP Archive 1.2)
# ============================================================================

class HARModel(BaseModel):
    """Base for HAR objects: camelCase aliases, unknown fields tolerated"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class HARHeader(HARModel):
    """Single request/response header"""
    name: str = Field(description="Header name as recorded (casing not normalized)")
    value: str = Field(description="Header value")


class HARPostData(HARModel):
    """Request body"""
    mime_type: str = Field(default="", alias="mimeType", description="Request body MIME type")
    text: Optional[str] = Field(default=None, description="Request body text")


class HARRequest(HARModel):
    """Captured request"""
    method: str = Field(description="HTTP method")
    url: str = Field(description="Full request URL")
    http_version: Optional[str] = Field(default=None, alias="httpVersion")
    headers: List[HARHeader] = Field(default_factory=list, description="Request headers in recorded order")
    post_data: Optional[HARPostData] = Field(default=None, alias="postData")


class HARContent(HARModel):
    """Response body"""
    size: int = Field(default=0, description="Body size in bytes")
    mime_type: Optional[str] = Field(default=None, alias="mimeType", description="Response MIME type")
    text: Optional[str] = Field(default=None, description="Response body text (None when not recorded)")
    encoding: Optional[str] = Field(default=None)


class HARResponse(HARModel):
    """Captured response"""
    status: int = Field(description="HTTP status code")
    status_text: str = Field(default="", alias="statusText")
    http_version: Optional[str] = Field(default=None, alias="httpVersion")
    headers: List[HARHeader] = Field(default_factory=list)
    content: HARContent = Field(description="Response body")


class HAREntry(HARModel):
    """One request/response exchange"""
    started_date_time: str = Field(alias="startedDateTime", description="ISO 8601 start time, kept verbatim")
    time: float = Field(ge=0, allow_inf_nan=False, description="Total elapsed time in ms")
    request: HARRequest
    response: HARResponse


class HARCreator(HARModel):
    name: str
    version: str


class HARLog(HARModel):
    version: str
    creator: HARCreator
    pages: Optional[List[Any]] = None
    entries: List[HAREntry]


class HARFile(HARModel):
    """Top-level HAR document"""
    log: HARLog


# ============================================================================
# NORMALIZED RECORDS
# ============================================================================

class BodyKind(str, Enum):
    """Outcome of a best-effort JSON decode"""
    PARSED = "parsed"
    RAW = "raw"
    ABSENT = "absent"


class DecodedBody(BaseModel):
    """Request or response body after decoding"""
    model_config = ConfigDict(frozen=True)

    kind: BodyKind = Field(description="Which decode branch produced this body")
    value: Any = Field(default=None, description="Decoded structure, original text, or None")

    @classmethod
    def parsed(cls, value: Any) -> "DecodedBody":
        return cls(kind=BodyKind.PARSED, value=value)

    @classmethod
    def raw(cls, text: str) -> "DecodedBody":
        return cls(kind=BodyKind.RAW, value=text)

    @classmethod
    def absent(cls) -> "DecodedBody":
        return cls(kind=BodyKind.ABSENT)

    @property
    def present(self) -> bool:
        return self.kind is not BodyKind.ABSENT

    def get(self, key: str) -> Any:
        """Look up a top-level field of a decoded JSON object, None otherwise"""
        if self.kind is BodyKind.PARSED and isinstance(self.value, dict):
            return self.value.get(key)
        return None


class NormalizedRecord(BaseModel):
    """Flat view of one API request, ready for rendering"""
    model_config = ConfigDict(frozen=True)

    index: int = Field(description="1-based position in the filtered sequence")
    timestamp: str = Field(description="startedDateTime, passed through verbatim")
    duration: int = Field(description="Elapsed time in ms, rounded half up")
    method: str
    url: str
    status: int
    request_body: DecodedBody
    response_body: DecodedBody
    is_graphql: bool = Field(description="Request body carries operationName or query")
    operation_name: Optional[str] = Field(default=None, description="operationName from the request body, when it is a string")


class OutputMode(str, Enum):
    """Report layouts"""
    TAGGED = "tagged"
    MARKDOWN = "markdown"
    COMPACT = "compact"
