"""
Test that key material never reaches log output.
"""

from auto_sender.core.logging import _drop_secrets


def test_secret_fields_are_masked():
    event = _drop_secrets(None, "info", {
        "event": "Auto-sender added",
        "signing_secret": "5Kb8kLf9zgWQnogidDA76Mz",
        "private_key": [1, 2, 3],
        "config_id": "autoSender_abc",
    })

    assert event["signing_secret"] == "***"
    assert event["private_key"] == "***"
    assert event["config_id"] == "autoSender_abc"


def test_unrelated_fields_untouched():
    event = _drop_secrets(None, "info", {"event": "tick", "secret_count": 2})

    assert event == {"event": "tick", "secret_count": 2}
