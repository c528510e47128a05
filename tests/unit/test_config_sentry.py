# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Unit tests for the config_sentry.py module."""

from typing import Any

from linkaudit.config_sentry import REDACTED_TEXT, strip_sensitive_data


def test_strip_sensitive_data_redacts_request() -> None:
    """Test that the request body, query string and credential headers are redacted."""
    event: Any = {
        "request": {
            "data": {"urls": ["https://example.com/private"]},
            "query_string": "url=https://example.com/private",
            "headers": {"X-API-Key": "secret", "Accept": "application/json"},
        }
    }

    sanitized: Any = strip_sensitive_data(event, {})

    assert sanitized["request"]["data"] == REDACTED_TEXT
    assert sanitized["request"]["query_string"] == REDACTED_TEXT
    assert sanitized["request"]["headers"] == {
        "X-API-Key": REDACTED_TEXT,
        "Accept": "application/json",
    }


def test_strip_sensitive_data_redacts_frame_vars() -> None:
    """Test that submitted URLs and headers are redacted from stack frame variables."""
    event: Any = {
        "exception": {
            "values": [
                {
                    "stacktrace": {
                        "frames": [
                            {
                                "vars": {
                                    "url": "https://example.com/private",
                                    "headers": {"X-API-Key": "secret"},
                                    "attempt": 2,
                                }
                            }
                        ]
                    }
                }
            ]
        }
    }

    sanitized: Any = strip_sensitive_data(event, {})

    frame_vars = sanitized["exception"]["values"][0]["stacktrace"]["frames"][0]["vars"]
    assert frame_vars == {"url": REDACTED_TEXT, "headers": REDACTED_TEXT, "attempt": 2}


def test_strip_sensitive_data_without_request() -> None:
    """Test that events without request or exception data pass through unchanged."""
    event: Any = {"message": "hello"}

    assert strip_sensitive_data(event, {}) == {"message": "hello"}
