from pydantic import BaseModel, Field
from typing import Optional


class ChatResponse(BaseModel):
    """Non-streaming chat response"""
    reply: str = Field(..., description="Assistant reply text")

    class Config:
        json_schema_extra = {
            "example": {
                "reply": "Summary: start with a 50/30/20 split.\n\n- Track spending for a month"
            }
        }


class ErrorResponse(BaseModel):
    """Error envelope shared by every failing endpoint"""
    error: str = Field(..., description="Error message")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Messages must be an array"
            }
        }


class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(..., description="Overall status")
    llm_type: str = Field(..., description="Completion provider type")
    model_name: str = Field(..., description="Configured model name")
    rag_enabled: bool = Field(..., description="Retrieval augmentation switch")
    collection: Optional[str] = Field(None, description="Vector store collection (if retrieval is enabled)")
