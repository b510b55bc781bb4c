"""
API dependencies for dependency injection.
"""
import logging
from fastapi import HTTPException

from services.audit_logger import AuditLogger
from services.jira_client import JiraClient, JiraClientError
from src.gherkin_jira_agent.config import JiraConfig, settings

logger = logging.getLogger(__name__)


def get_jira_client() -> JiraClient:
    """
    Build a Jira client from environment configuration.

    Raises:
        HTTPException(500): If Jira is not configured
    """
    try:
        config = JiraConfig.from_env()
        logger.debug(f"Jira config: {config.describe()}")
        return JiraClient(
            base_url=config.JIRA_BASE_URL,
            username=config.JIRA_USERNAME,
            api_token=config.JIRA_API_TOKEN,
            timeout=config.JIRA_API_TIMEOUT or settings.jira_api_timeout
        )
    except (ValueError, JiraClientError) as e:
        logger.error(f"Jira configuration error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Jira configuration error: {str(e)}")


def get_audit_logger() -> AuditLogger:
    return AuditLogger(log_dir=settings.audit_log_dir)
