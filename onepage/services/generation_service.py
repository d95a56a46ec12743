"""Generation service — moderation, then one-page HTML generation."""

import logging

from onepage.prompts.generator import build_generator_prompt, parse_generator_response
from onepage.services.moderation_service import ensure_safe

logger = logging.getLogger(__name__)


def generate_site_html(form_data, model_client, instruction=None):
    """Moderate ``form_data`` and generate its page.

    Returns (html, moderation_result). Raises ModerationRejection before
    any generation call when the content is unsafe.
    """
    moderation = ensure_safe(form_data, model_client)

    logger.info(f"Generating HTML for {form_data.subdomain}...")
    prompt = build_generator_prompt(form_data, instruction=instruction)
    raw = model_client.generate_text(prompt, temperature=0.7)
    html = parse_generator_response(raw)
    logger.info(f"HTML generated for {form_data.subdomain}, length: {len(html)}")

    return html, moderation
