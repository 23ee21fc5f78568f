import logging
import re
from dataclasses import dataclass
from enum import Enum

from resume_reviewer.app.core.config import (
    DEFAULT_CONSTRAINED_USER_AGENT_PATTERN,
    CapabilityPolicy,
    Settings,
)

log = logging.getLogger(__name__)


class Capability(str, Enum):
    """Whether generating a preview image is worthwhile for a client."""

    FULL_FIDELITY = "full_fidelity"
    CONSTRAINED = "constrained"


@dataclass(frozen=True)
class ClientSignals:
    """Coarse signals describing the requesting client.

    Attributes:
        user_agent (str): The User-Agent header.
        viewport_width (int | None): Viewport width in CSS pixels, when the client reported it.

    """

    user_agent: str = ""
    viewport_width: int | None = None


def classify(
    signals: ClientSignals,
    policy: CapabilityPolicy = CapabilityPolicy.ANY,
    max_width: int = 768,
    user_agent_pattern: str = DEFAULT_CONSTRAINED_USER_AGENT_PATTERN,
) -> Capability:
    """Classify a client as full-fidelity or constrained.

    Args:
        signals (ClientSignals): The client's user agent and viewport width.
        policy (CapabilityPolicy): ANY marks the client constrained when either signal matches,
            ALL only when both match.
        max_width (int): Viewport width at or below which the client counts as narrow.
        user_agent_pattern (str): Case-insensitive regex matching constrained user agents.

    Returns:
        Capability: The capability tag for the whole submission.

    Notes:
        1. The user-agent signal matches when the pattern is found anywhere in the header.
        2. The viewport signal matches when a width was reported and is at most `max_width`;
           an unreported width never matches.
        3. The signals are combined with OR or AND according to `policy`.

    """
    ua_matches = bool(re.search(user_agent_pattern, signals.user_agent or "", re.IGNORECASE))
    narrow = signals.viewport_width is not None and signals.viewport_width <= max_width

    if policy == CapabilityPolicy.ALL:
        constrained = ua_matches and narrow
    else:
        constrained = ua_matches or narrow

    result = Capability.CONSTRAINED if constrained else Capability.FULL_FIDELITY
    _msg = (
        f"classify: ua_matches={ua_matches} narrow={narrow} policy={policy.value} "
        f"-> {result.value}"
    )
    log.debug(_msg)
    return result


def classify_with_settings(signals: ClientSignals, settings: Settings) -> Capability:
    """Classify a client using the policy configured in `settings`."""
    return classify(
        signals,
        policy=settings.capability_policy,
        max_width=settings.constrained_max_width,
        user_agent_pattern=settings.constrained_user_agent_pattern,
    )
