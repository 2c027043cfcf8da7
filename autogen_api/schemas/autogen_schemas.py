from pydantic import BaseModel, Field
from typing import List

class HealthResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    message: str = Field(..., description="Human readable status message")

class BustAllResponse(BaseModel):
    """Response schema for clearing every cached artifact of a design number"""
    success: bool = Field(..., description="True when every matching file was removed")
    design_number: str = Field(..., description="Design number whose cache was cleared")
    cleared_design_files: int = Field(..., description="Design assets and intermediates removed")
    cleared_output_files: int = Field(..., description="Composite outputs removed")
    failed_deletions: List[str] = Field(default_factory=list, description="Keys that could not be removed")
    message: str = Field(..., description="Summary of the operation")

class ErrorResponse(BaseModel):
    """Error response schema"""
    detail: str = Field(..., description="Error details")
