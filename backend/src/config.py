"""Configuration management for the Feedback Hub backend."""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
from dotenv import load_dotenv

# Load .env file from secure home directory location ONLY.
# This prevents accidental commits of secrets to the repository.
#
# REQUIRED location: ~/.feedback_hub/.env
#
# Setup:
#   mkdir -p ~/.feedback_hub
#   cp .env.example ~/.feedback_hub/.env
#   chmod 600 ~/.feedback_hub/.env

_env_loaded_from: Optional[str] = None


def _load_env_file() -> Optional[str]:
    """Load .env from secure home directory location only."""
    env_path = Path.home() / '.feedback_hub' / '.env'

    if env_path.exists():
        load_dotenv(env_path)
        return str(env_path)

    return None


_env_loaded_from = _load_env_file()

logger = logging.getLogger(__name__)

if not _env_loaded_from:
    logger.warning("No .env file found at ~/.feedback_hub/.env, using process environment only")


VALID_STATUS_POLICIES = ['coerce', 'reject']


def get_log_level() -> str:
    """Get log level from environment, default to INFO."""
    level = os.getenv('LOG_LEVEL', 'INFO').upper()
    valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

    if level not in valid_levels:
        logger.warning(f"Invalid log level '{level}', defaulting to INFO")
        return 'INFO'

    return level


def get_database_url() -> str:
    """Get primary PostgreSQL database connection URL."""
    db_user = os.getenv('POSTGRES_USER', 'postgres')
    db_pass = os.getenv('POSTGRES_PASSWORD', 'postgres')
    db_host = os.getenv('POSTGRES_HOST', 'postgres')
    db_port = os.getenv('POSTGRES_PORT', '5432')
    db_name = os.getenv('POSTGRES_DB', 'feedback_hub')

    return f"postgresql://{db_user}:{db_pass}@{db_host}:{db_port}/{db_name}"


def get_app_database_url() -> str:
    """Get the application database URL.

    Reads from DATABASE_URL environment variable, falling back to constructed
    URL from individual POSTGRES_* variables.
    """
    return os.getenv('DATABASE_URL', get_database_url())


def _get_positive_int(env_name: str, default: int) -> int:
    try:
        value = int(os.getenv(env_name, str(default)))
    except ValueError:
        logger.warning(f"Invalid {env_name}, using default {default}")
        return default

    if value <= 0:
        logger.warning(f"{env_name} must be positive, using default {default}")
        return default

    return value


def get_db_pool_size() -> int:
    return _get_positive_int('DB_POOL_SIZE', 5)


def get_db_max_overflow() -> int:
    return _get_positive_int('DB_MAX_OVERFLOW', 10)


# Monday.com (bug report intake)
def get_monday_api_key() -> Optional[str]:
    """Get Monday.com API key from environment."""
    return os.getenv('MONDAY_API_KEY', None)


def get_monday_bug_board() -> Optional[str]:
    """Get the Monday.com board id that receives bug reports."""
    return os.getenv('MONDAY_BUG_BOARD', None)


def get_monday_api_url() -> str:
    return os.getenv('MONDAY_API_URL', 'https://api.monday.com/v2')


def get_monday_file_url() -> str:
    return os.getenv('MONDAY_FILE_URL', 'https://api.monday.com/v2/file')


def get_monday_timeout() -> float:
    """Get HTTP timeout (seconds) for Monday.com calls."""
    try:
        return float(os.getenv('MONDAY_TIMEOUT_SECONDS', '30'))
    except ValueError:
        logger.warning("Invalid MONDAY_TIMEOUT_SECONDS, using default 30")
        return 30.0


# Blob storage for feedback attachments
def get_blob_bucket() -> Optional[str]:
    """Get the bucket that stores feedback attachments."""
    return os.getenv('BLOB_BUCKET', None)


def get_blob_region() -> str:
    return os.getenv('BLOB_REGION', 'us-east-1')


def get_blob_endpoint_url() -> Optional[str]:
    """Get a custom S3-compatible endpoint (MinIO, R2, ...), if any."""
    return os.getenv('BLOB_ENDPOINT_URL', None)


def get_blob_public_base_url() -> Optional[str]:
    """Get the public base URL used to build attachment links.

    Falls back to the virtual-hosted S3 URL of the bucket when unset.
    """
    return os.getenv('BLOB_PUBLIC_BASE_URL', None)


def is_blob_storage_configured() -> bool:
    return bool(get_blob_bucket())


# Status handling
def _get_status_policy(env_name: str, default: str) -> str:
    value = os.getenv(env_name, default).lower()
    if value not in VALID_STATUS_POLICIES:
        logger.warning(f"Invalid {env_name} '{value}', defaulting to '{default}'")
        return default
    return value


def get_insert_status_policy() -> str:
    """Policy applied to an unknown status on submission (default: coerce)."""
    return _get_status_policy('FEEDBACK_INSERT_STATUS_POLICY', 'coerce')


def get_update_status_policy() -> str:
    """Policy applied to an unknown status on update (default: reject)."""
    return _get_status_policy('FEEDBACK_UPDATE_STATUS_POLICY', 'reject')


def get_default_locale() -> str:
    return os.getenv('FEEDBACK_DEFAULT_LOCALE', 'en')


def get_default_page_limit() -> int:
    """Get default page size for feedback listings."""
    return _get_positive_int('DEFAULT_PAGE_LIMIT', 50)


@dataclass(frozen=True)
class SiteConfig:
    """Public identity of the deployment."""

    name: str
    description: str
    url: str
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    links: Dict[str, str] = field(default_factory=dict)


def get_site_config() -> SiteConfig:
    """Build the site configuration from environment overrides."""
    origins = os.getenv('ALLOWED_ORIGINS', '*')
    return SiteConfig(
        name=os.getenv('SITE_NAME', 'Main 12'),
        description=os.getenv('SITE_DESCRIPTION', 'Feedback and support intake service'),
        url=os.getenv('SITE_URL', 'app.enntra.com'),
        allowed_origins=[o.strip() for o in origins.split(',') if o.strip()] or ["*"],
        links={
            'terms': 'https://main12.com/terms',
            'privacy': 'http://main12.com/privacy',
            'help': '/help',
        },
    )
