from pydantic import BaseModel, Field, StrictStr
from typing import Any, Optional

class StoryRequest(BaseModel):
    prompt: StrictStr = Field(min_length=1)

class StoryResponse(BaseModel):
    story: str

class ErrorResponse(BaseModel):
    error: str
    detail: Optional[Any] = None # Upstream error body or message
    raw: Optional[Any] = None # Upstream payload when it carried no story
