"""Moderation gate — nothing is generated or stored for unsafe content.

An unsafe verdict and an unreadable verdict are different failures:
ModerationRejection (422, shown to the user, never retried) versus
ContentContractError (502, logged as prompt drift).
"""

import logging

from onepage.errors import ModerationRejection
from onepage.prompts.moderation import build_moderation_prompt, parse_moderation_response

logger = logging.getLogger(__name__)


def moderate(form_data, model_client):
    """Classify the form's free text. Returns a ModerationResult."""
    prompt = build_moderation_prompt(form_data)
    raw = model_client.generate_json(prompt)
    result = parse_moderation_response(raw)
    logger.info(
        f"Moderation for {form_data.subdomain}: "
        f"safe={result.is_safe} reason={result.reason!r}"
    )
    return result


def ensure_safe(form_data, model_client):
    """Run moderation and raise ModerationRejection on an unsafe verdict."""
    result = moderate(form_data, model_client)
    if not result.is_safe:
        raise ModerationRejection(result.reason)
    return result
