import os
from functools import lru_cache
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""
    APP_NAME: str = "Mockup Autogen API"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_TO_FILE: bool = True
    LOG_DIR: str = "logs"
    
    # CORS settings
    CORS_ORIGINS: list = ["*"]
    
    # Storage namespaces (relative to STORAGE_ROOT)
    STORAGE_ROOT: str = "."
    TEMPLATE_DIR: str = "template"
    DESIGN_DIR: str = "design"
    OUTPUT_DIR: str = "output"
    TEMPLATE_EXTENSION: str = "jpg"
    FALLBACK_IMAGE: str = "fallback.jpg"
    
    # Remote design source
    BASE_DESIGN_URL: str = ""
    MIN_DESIGN_BYTES: int = 7000
    FETCH_TIMEOUT_SECONDS: float = 10.0
    
    # Placement canvas (~35 px per inch)
    CANVAS_WIDTH: int = 826
    CANVAS_HEIGHT: int = 1011
    MIN_EXTRACTED_SIZE: int = 10
    ALLOW_UPSCALE: bool = True
    
    # Generation
    GENERATION_TIMEOUT_SECONDS: float = 15.0
    MAX_CONCURRENT_COMPOSITES: int = 2
    JPEG_QUALITY: int = 92
    
    class Config:
        env_file = ".env"

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
