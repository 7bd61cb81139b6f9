"""
Pydantic schemas for API request and response models
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from oralprep.domain.models import CamelModel, ImageContext, SessionPhase


# Session Schemas

class SessionCreateRequest(CamelModel):
    """Schema for starting a practice session"""
    user_id: str = Field(..., min_length=1, description="Learner the session belongs to")
    image_context: Optional[ImageContext] = Field(None, description="Context of the image to present")


class SessionAdvanceRequest(CamelModel):
    """Schema for moving a session to its next phase"""
    status: SessionPhase = Field(..., description="Requested phase")
    presentation_text: Optional[str] = Field(None, description="Presentation text saved when moving to CONVERSING")


class ScoreOverrideRequest(CamelModel):
    """Schema for a teacher override of one criterion mark"""
    criterion: str = Field(..., description="Rubric criterion: A, B1, B2 or C")
    new_score: int = Field(..., description="Replacement mark")
    justification: str = Field(..., description="Reason for the override")
    teacher_id: str = Field(..., min_length=1, description="Teacher applying the override")


class ScoreOverrideResponse(BaseModel):
    """Schema for override confirmation"""
    success: bool = True
    criterion: str
    new_score: int


class FeedbackJobResponse(BaseModel):
    """Schema for background analysis status"""
    session_id: str
    status: str
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


# Health Schemas

class HealthResponse(BaseModel):
    """Schema for health check response"""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Health check timestamp")
    services: Dict[str, str] = Field(default_factory=dict, description="Dependent service status")
    version: Optional[str] = Field(None, description="API version")


# Error Schemas

class ErrorDetail(BaseModel):
    """Single validation problem"""
    type: str
    message: str
    field: str


class ErrorResponse(BaseModel):
    """Standard error response model"""
    error: str = Field(..., description="High-level error summary")
    details: Optional[List[ErrorDetail]] = Field(None, description="Structured validation details")
    request_id: Optional[str] = Field(None, description="Request identifier for tracing")
