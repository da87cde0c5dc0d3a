"""
Pytest configuration for the statemigrator test suite.

Provides:
- ``src/`` on the import path for runs without an installed package
- A Loguru to standard logging bridge so ``caplog`` sees package logs
- A Hypothesis profile for the property-based tests
- Shared raw record fixtures for the application resource
"""

import contextlib
import logging
import sys
from pathlib import Path
from typing import Any, Dict

# Add the src directory to the Python path
src_path = str(Path(__file__).parent.parent / "src")
sys.path.insert(0, src_path)

import pytest
from hypothesis import HealthCheck, settings
from loguru import logger

settings.register_profile(
    "statemigrator",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
settings.load_profile("statemigrator")


@pytest.fixture(autouse=True, scope="function")
def capture_loguru_logs_globally(caplog):
    """Forward Loguru records into pytest's caplog."""

    class PropagateHandler(logging.Handler):
        def emit(self, record):
            logging.getLogger(record.name or "statemigrator").handle(record)

    caplog.set_level(logging.DEBUG)
    handler_id = logger.add(
        PropagateHandler(),
        format="{message}",
        level="DEBUG",
        enqueue=False,
    )

    yield

    with contextlib.suppress(ValueError):
        logger.remove(handler_id)


@pytest.fixture
def legacy_application_record() -> Dict[str, Any]:
    """A realistic version 0 application record as persisted by the host runtime."""
    return {
        "display_name": "billing-api",
        "application_id": "00000000-0000-0000-0000-000000000001",
        "object_id": "00000000-0000-0000-0000-000000000002",
        "group_membership_claims": "SecurityGroup",
        "public_client": False,
        "identifier_uris": ["api://billing"],
        "owners": ["11111111-1111-1111-1111-111111111111"],
        "api": [
            {
                "oauth2_permission_scope": [
                    {
                        "id": "22222222-2222-2222-2222-222222222222",
                        "admin_consent_description": "Read billing data",
                        "enabled": True,
                        "type": "User",
                        "value": "billing.read",
                    }
                ]
            }
        ],
        "optional_claims": [
            {
                "access_token": [
                    {"name": "groups", "essential": False, "additional_properties": ["emit_as_roles"]}
                ],
                "id_token": [],
            }
        ],
        "web": [
            {
                "homepage_url": "https://billing.example.com",
                "redirect_uris": ["https://billing.example.com/callback"],
                "implicit_grant": [{"access_token_issuance_enabled": False}],
            }
        ],
        "prevent_duplicate_names": False,
    }
