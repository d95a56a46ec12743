"""Moderation prompt: classify the free-text form fields as safe or unsafe.

Sent to the low-temperature JSON model. The reply must be exactly
{"isSafe": <bool>, "reason": <string>}; anything else is a contract error,
never an implicit "safe".
"""

import json
import logging

from onepage.errors import ContentContractError
from onepage.prompts.common import strip_fences

logger = logging.getLogger(__name__)


class ModerationResult:
    """Outcome of one moderation call."""

    def __init__(self, is_safe, reason):
        self.is_safe = is_safe
        self.reason = reason

    def to_dict(self):
        return {"isSafe": self.is_safe, "reason": self.reason}

    def __eq__(self, other):
        if not isinstance(other, ModerationResult):
            return NotImplemented
        return (self.is_safe, self.reason) == (other.is_safe, other.reason)

    def __repr__(self):
        return f"<ModerationResult safe={self.is_safe} reason={self.reason!r}>"


MODERATION_TEMPLATE = """\
You are the content moderator for a website builder service.
Review the text a customer submitted for their one-page website.

## Content under review

Site name: {site_name}
Catchphrase: {catchphrase}
Description: {description}
Contact information: {contact_info}

## Criteria

Judge the content UNSAFE if any of the following applies:
- Promotes or facilitates illegal activity (fraud, drug sales, piracy, etc.)
- Adult or sexual content
- Discriminatory or hateful expressions (race, gender, religion, etc.)
- Violent or threatening expressions
- Aims to collect personal information illegitimately
- Phishing or malware distribution
- Exaggerated claims for medicine or health products (guaranteed effects)
- Links to organized crime or anti-social groups

## Output format

Reply with this JSON object only. No explanation.

{{
  "isSafe": true or false,
  "reason": "why, in at most 50 characters"
}}

Example when safe:
{{"isSafe": true, "reason": "No problematic expressions found"}}

Example when unsafe:
{{"isSafe": false, "reason": "Claims a supplement guarantees a cure"}}"""


def build_moderation_prompt(form_data):
    """Embed the four free-text fields of a SiteFormData into the template."""
    return MODERATION_TEMPLATE.format(
        site_name=form_data.site_name,
        catchphrase=form_data.catchphrase,
        description=form_data.description,
        contact_info=form_data.contact_info,
    )


def parse_moderation_response(raw):
    """Parse the model's reply into a ModerationResult.

    Raises ContentContractError unless the reply is a JSON object with a
    boolean isSafe and a string reason.
    """
    cleaned = strip_fences(raw)
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        logger.error(f"Moderation reply is not JSON: {cleaned[:200]!r}")
        raise ContentContractError("Invalid moderation response format")

    if (
        not isinstance(parsed, dict)
        or not isinstance(parsed.get("isSafe"), bool)
        or not isinstance(parsed.get("reason"), str)
    ):
        logger.error(f"Moderation reply has wrong shape: {cleaned[:200]!r}")
        raise ContentContractError("Invalid moderation response format")

    return ModerationResult(parsed["isSafe"], parsed["reason"])
