"""
Configuration for the Gherkin-to-Jira hierarchy agent.
"""
import os
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables that aren't defined in the model
    )
    
    # API Configuration
    api_title: str = "Gherkin Jira Hierarchy Agent"
    api_version: str = "1.0.0"
    
    # Jira Configuration
    jira_api_timeout: int = 90
    
    # Application Configuration
    log_level: str = "INFO"
    audit_log_dir: str = "audit_logs"
    default_root_label: str = "Feature Files"
    cors_allowed_origins: str = ""
    
    def allowed_origins(self) -> List[str]:
        """Local development origins plus any from CORS_ALLOWED_ORIGINS (comma separated)."""
        origins = [
            "http://localhost:5173",
            "http://localhost:3000",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:3000",
        ]
        for origin in self.cors_allowed_origins.split(","):
            origin = origin.strip()
            if origin and origin not in origins:
                origins.append(origin)
        return origins


class JiraConfig:
    """Jira connection settings."""
    
    JIRA_BASE_URL: str
    JIRA_USERNAME: str
    JIRA_API_TOKEN: str
    JIRA_API_TIMEOUT: Optional[int] = None
    
    @classmethod
    def from_env(cls) -> "JiraConfig":
        """
        Create config from environment variables.
        
        Returns:
            JiraConfig instance
            
        Raises:
            ValueError: If required environment variables are missing
        """
        base_url = os.getenv("JIRA_BASE_URL")
        # Support both JIRA_USERNAME and JIRA_EMAIL (common convention)
        username = os.getenv("JIRA_USERNAME") or os.getenv("JIRA_EMAIL")
        api_token = os.getenv("JIRA_API_TOKEN")
        timeout = os.getenv("JIRA_API_TIMEOUT")
        
        if not base_url:
            raise ValueError("JIRA_BASE_URL environment variable is required")
        if not username:
            raise ValueError("JIRA_USERNAME or JIRA_EMAIL environment variable is required")
        if not api_token:
            raise ValueError("JIRA_API_TOKEN environment variable is required")
        
        config = cls()
        config.JIRA_BASE_URL = base_url
        config.JIRA_USERNAME = username
        config.JIRA_API_TOKEN = api_token
        config.JIRA_API_TIMEOUT = int(timeout) if timeout else None
        
        return config
    
    def describe(self) -> dict:
        """Loggable view of the config (no secrets)."""
        return {
            "url": self.JIRA_BASE_URL,
            "username": "(provided)" if self.JIRA_USERNAME else "(missing)",
            "api_token": "(provided)" if self.JIRA_API_TOKEN else "(missing)",
        }


# Global settings instance
settings = Settings()
