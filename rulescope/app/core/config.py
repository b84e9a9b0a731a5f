"""Configuration management for rulescope."""
import os
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""
    
    # API Configuration
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "rulescope - Rule Logic and Explanation Graphs"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    
    # Rule sources named in requests resolve against this directory
    RULES_DIR: Path = Path(os.environ.get("RULES_DIR", Path(__file__).parent.parent.parent.parent / "samples" / "rules"))
    
    # Logic graph construction
    INSERT_FUNCTIONS: List[str] = ["insert", "insert_unconditional", "insert_all"]
    LOGIC_GRAPH_WORKERS: int = 1  # 1 = build rule fragments serially
    
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    
    model_config = {
        "env_file": ".env",
        "case_sensitive": True
    }


# Global settings instance
settings = Settings()
