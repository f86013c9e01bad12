import logging

import pytest

from autosizer.config import Settings
from autosizer.core import MACHINE_TYPE_RECOMMENDER
from autosizer.exceptions import ConfigurationError


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})

    assert settings.project_id is None
    assert settings.recommender_id == MACHINE_TYPE_RECOMMENDER
    assert settings.mark_recommendations is True
    assert settings.log_level_number == logging.INFO


def test_from_env_overrides():
    settings = Settings.from_env(
        {
            "GCP_PROJECT": "legacy-project",
            "AUTOSIZER_POLL_TIMEOUT": "120",
            "AUTOSIZER_POLL_MAX_ATTEMPTS": "10",
            "AUTOSIZER_MARK_RECOMMENDATIONS": "false",
            "AUTOSIZER_LOG_LEVEL": "debug",
        }
    )

    assert settings.project_id == "legacy-project"
    assert settings.poll_timeout_seconds == 120.0
    assert settings.poll_max_attempts == 10
    assert settings.mark_recommendations is False
    assert settings.log_level == "DEBUG"


def test_google_cloud_project_wins():
    settings = Settings.from_env(
        {"GOOGLE_CLOUD_PROJECT": "new-project", "GCP_PROJECT": "legacy-project"}
    )
    assert settings.project_id == "new-project"


@pytest.mark.parametrize(
    "environ",
    [
        {"AUTOSIZER_POLL_TIMEOUT": "soon"},
        {"AUTOSIZER_POLL_MAX_ATTEMPTS": "0"},
        {"AUTOSIZER_LOG_LEVEL": "chatty"},
    ],
)
def test_invalid_settings(environ):
    with pytest.raises(ConfigurationError):
        Settings.from_env(environ)


def test_poll_config_keys():
    config = Settings().poll_config()
    assert set(config) == {"stop", "wait"}
