from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal


Status = Literal["healthy", "warning", "critical", "mild", "moderate", "invalid"]


class ProcessingStep(BaseModel):
    step: str
    completed: bool
    duration: int  # ms


class DetectionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Status
    title: str
    message: str
    confidence: int = Field(ge=0, le=100)
    color: str
    processing_steps: List[ProcessingStep] = Field(default_factory=list, alias="processingSteps")


class StoredImage(BaseModel):
    original_filename: str
    stored_filename: str
    size_bytes: int
    content_type: str


class DetectionLogEntry(BaseModel):
    id: int
    image1_name: str
    image2_name: str
    result: DetectionResult
    created_at: str


class DetectionData(BaseModel):
    id: int
    images: List[str]
    result: DetectionResult
    timestamp: str


class DetectResponse(BaseModel):
    success: bool = True
    data: DetectionData


class HistoryResponse(BaseModel):
    success: bool = True
    data: List[DetectionLogEntry]


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
