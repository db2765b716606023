from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Chronicle"
    debug: bool = False
    base_url: str = "http://localhost:8000"  # Used for dashboard/content links in Slack messages

    # Database
    database_url: str = "sqlite:///./chronicle.db"

    # Jira
    jira_base_url: str = ""
    jira_email: str = ""  # Basic auth when set, otherwise Bearer token
    jira_api_token: str = ""
    jira_summary_field_id: str = "customfield_10087"
    jira_timeout: int = 15  # Seconds

    # Webhook eligibility
    accepted_webhook_events: List[str] = ["jira:issue_updated"]
    done_status_category: str = "done"
    customer_impact_label: str = "customer-impact"

    # Slack
    slack_bot_token: str = ""
    slack_approval_channel: str = "#content-approvals"
    slack_updates_channel: str = "#product-updates"

    # AI providers (primary is tried twice, fallback once)
    ai_primary_provider: str = "gen_ai_hub"
    ai_fallback_provider: str = "anthropic"

    # gen_ai_hub proxy - no API key needed, credentials come from the AI Core service key
    gen_ai_hub_model: str = "gpt-4o"

    openai_api_key: str = ""
    openai_model: str = "gpt-4o"

    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"

    temperature: float = 0.3
    max_tokens: int = 1200

    # Processing Configuration
    ai_attempt_timeout: float = 30.0  # Seconds per provider attempt
    ai_total_timeout: float = 60.0  # Seconds for the whole fallback chain
    default_quality_score: float = 0.85

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
