import pytest

from resume_reviewer.app.core.config import CapabilityPolicy, Settings
from resume_reviewer.app.pipeline.capability import (
    Capability,
    ClientSignals,
    classify,
    classify_with_settings,
)

DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/126.0"
PHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"


@pytest.mark.parametrize(
    "user_agent, width, expected",
    [
        (DESKTOP_UA, 1440, Capability.FULL_FIDELITY),
        (DESKTOP_UA, None, Capability.FULL_FIDELITY),
        (DESKTOP_UA, 768, Capability.CONSTRAINED),
        (DESKTOP_UA, 769, Capability.FULL_FIDELITY),
        (PHONE_UA, 1440, Capability.CONSTRAINED),
        (PHONE_UA, None, Capability.CONSTRAINED),
        ("", None, Capability.FULL_FIDELITY),
    ],
)
def test_classify_any_policy(user_agent, width, expected):
    signals = ClientSignals(user_agent=user_agent, viewport_width=width)
    assert classify(signals, policy=CapabilityPolicy.ANY) == expected


@pytest.mark.parametrize(
    "user_agent, width, expected",
    [
        (PHONE_UA, 390, Capability.CONSTRAINED),
        (PHONE_UA, 1440, Capability.FULL_FIDELITY),
        (PHONE_UA, None, Capability.FULL_FIDELITY),
        (DESKTOP_UA, 390, Capability.FULL_FIDELITY),
    ],
)
def test_classify_all_policy(user_agent, width, expected):
    signals = ClientSignals(user_agent=user_agent, viewport_width=width)
    assert classify(signals, policy=CapabilityPolicy.ALL, max_width=640) == expected


def test_classify_user_agent_is_case_insensitive():
    signals = ClientSignals(user_agent="OPERA MINI/8.0")
    assert classify(signals) == Capability.CONSTRAINED


def test_classify_with_settings_uses_configured_policy():
    settings = Settings(
        _env_file=None,
        CAPABILITY_POLICY="all",
        CONSTRAINED_MAX_WIDTH=640,
        CONSTRAINED_USER_AGENT_PATTERN="kindle",
    )
    assert classify_with_settings(
        ClientSignals(user_agent="Kindle/3.0", viewport_width=600), settings
    ) == Capability.CONSTRAINED
    assert classify_with_settings(
        ClientSignals(user_agent=PHONE_UA, viewport_width=600), settings
    ) == Capability.FULL_FIDELITY
