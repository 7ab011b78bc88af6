"""Unit tests for configuration and environment variable handling."""

import os
import pytest
from unittest.mock import patch


class TestDatabaseConfiguration:
    def test_database_url_from_parts(self):
        env = {
            'POSTGRES_USER': 'u',
            'POSTGRES_PASSWORD': 'p',
            'POSTGRES_HOST': 'db',
            'POSTGRES_PORT': '5433',
            'POSTGRES_DB': 'fb',
        }
        with patch.dict(os.environ, env):
            from src.config import get_database_url

            assert get_database_url() == "postgresql://u:p@db:5433/fb"

    def test_database_url_override(self):
        with patch.dict(os.environ, {'DATABASE_URL': 'postgresql://x@y/z'}):
            from src.config import get_app_database_url

            assert get_app_database_url() == 'postgresql://x@y/z'

    def test_pool_settings(self):
        with patch.dict(os.environ, {'DB_POOL_SIZE': '12', 'DB_MAX_OVERFLOW': 'lots'}):
            from src.config import get_db_max_overflow, get_db_pool_size

            assert get_db_pool_size() == 12
            assert get_db_max_overflow() == 10


class TestLogLevel:
    @pytest.mark.parametrize("value,expected", [("debug", "DEBUG"), ("ERROR", "ERROR"), ("loud", "INFO")])
    def test_log_level(self, value, expected):
        with patch.dict(os.environ, {'LOG_LEVEL': value}):
            from src.config import get_log_level

            assert get_log_level() == expected


class TestStatusPolicies:
    def test_defaults(self):
        from src.config import get_insert_status_policy, get_update_status_policy

        assert get_insert_status_policy() == 'coerce'
        assert get_update_status_policy() == 'reject'

    def test_overrides(self):
        env = {'FEEDBACK_INSERT_STATUS_POLICY': 'REJECT', 'FEEDBACK_UPDATE_STATUS_POLICY': 'coerce'}
        with patch.dict(os.environ, env):
            from src.config import get_insert_status_policy, get_update_status_policy

            assert get_insert_status_policy() == 'reject'
            assert get_update_status_policy() == 'coerce'

    def test_invalid_value_uses_default(self):
        with patch.dict(os.environ, {'FEEDBACK_UPDATE_STATUS_POLICY': 'maybe'}):
            from src.config import get_update_status_policy

            assert get_update_status_policy() == 'reject'


class TestPagination:
    @pytest.mark.parametrize("value,expected", [("25", 25), ("zero", 50), ("-3", 50)])
    def test_default_page_limit(self, value, expected):
        with patch.dict(os.environ, {'DEFAULT_PAGE_LIMIT': value}):
            from src.config import get_default_page_limit

            assert get_default_page_limit() == expected


class TestIntegrations:
    def test_blob_storage_configured_only_with_bucket(self):
        from src.config import is_blob_storage_configured

        assert is_blob_storage_configured() is False
        with patch.dict(os.environ, {'BLOB_BUCKET': 'files'}):
            assert is_blob_storage_configured() is True

    def test_monday_timeout(self):
        from src.config import get_monday_timeout

        with patch.dict(os.environ, {'MONDAY_TIMEOUT_SECONDS': '7.5'}):
            assert get_monday_timeout() == 7.5
        with patch.dict(os.environ, {'MONDAY_TIMEOUT_SECONDS': 'soon'}):
            assert get_monday_timeout() == 30.0


class TestSiteConfig:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            from src.config import get_site_config

            site = get_site_config()

        assert site.name == "Main 12"
        assert site.url == "app.enntra.com"
        assert site.allowed_origins == ["*"]
        assert "privacy" in site.links

    def test_allowed_origins_list(self):
        with patch.dict(os.environ, {'ALLOWED_ORIGINS': 'https://a.example.com, https://b.example.com'}):
            from src.config import get_site_config

            assert get_site_config().allowed_origins == ['https://a.example.com', 'https://b.example.com']
