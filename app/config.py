"""
Application Configuration
Load settings from environment variables with validation
"""
import os


class Settings:
    """Application configuration from environment variables"""

    # MongoDB Configuration
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "proposal_pilot")
    MONGODB_TLS: bool = os.getenv("MONGODB_TLS", "False").lower() == "true"

    # OpenAI Configuration
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_LLM_MODEL: str = os.getenv("OPENAI_LLM_MODEL", "gpt-4o")
    OPENAI_ANALYSIS_MODEL: str = os.getenv("OPENAI_ANALYSIS_MODEL", "gpt-4o-mini")  # briefs + scoring
    OPENAI_MAX_TOKENS: int = int(os.getenv("OPENAI_MAX_TOKENS", "4096"))
    OPENAI_TEMPERATURE: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))

    # LLM Response Cache
    LLM_CACHE_ENABLED: bool = os.getenv("LLM_CACHE_ENABLED", "True").lower() == "true"
    LLM_CACHE_TTL_HOURS: int = int(os.getenv("LLM_CACHE_TTL_HOURS", "24"))

    # Application Configuration
    APP_NAME: str = "ProposalPilot"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "True").lower() == "true"
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")
    SEED_TEMPLATES_ON_STARTUP: bool = os.getenv("SEED_TEMPLATES_ON_STARTUP", "True").lower() == "true"

    # API Configuration
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    # Quota Configuration
    FREE_TIER_PROPOSAL_LIMIT: int = int(os.getenv("FREE_TIER_PROPOSAL_LIMIT", "3"))
    FREE_TIER_WINDOW_DAYS: int = int(os.getenv("FREE_TIER_WINDOW_DAYS", "30"))
    QUOTA_FAIL_OPEN: bool = os.getenv("QUOTA_FAIL_OPEN", "True").lower() == "true"

    # Proposal Generation Configuration
    DEFAULT_HOURLY_RATE: float = float(os.getenv("DEFAULT_HOURLY_RATE", "100"))

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Initialize settings
settings = Settings()

def validate_settings() -> bool:
    """
    Validate that all required settings are configured

    Returns:
        True if all required settings are present

    Raises:
        ValueError: If required settings are missing
    """
    required_keys = {
        "OPENAI_API_KEY": settings.OPENAI_API_KEY,
        "MONGODB_URI": settings.MONGODB_URI,
        "ADMIN_API_KEY": settings.ADMIN_API_KEY,
    }

    missing_keys = [key for key, value in required_keys.items() if not value]
    if missing_keys:
        raise ValueError(f"Missing required environment variables: {', '.join(missing_keys)}")

    return True
