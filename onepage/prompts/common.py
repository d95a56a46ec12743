"""Text recovery helpers shared by the response parsers."""

import logging
import re

from onepage.errors import ContentContractError

logger = logging.getLogger(__name__)

DOCTYPE_MARKER = "<!doctype html"
CLOSING_TAG = "</html>"

_LEADING_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*")
_TRAILING_FENCE = re.compile(r"\s*```\s*$")


def strip_fences(raw):
    """Remove a leading ```lang and trailing ``` the model may emit anyway."""
    text = _LEADING_FENCE.sub("", raw or "", count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def extract_html_document(raw, label="HTML"):
    """Return the document from <!DOCTYPE html> through the last </html>.

    Matching is case-insensitive. Preamble before the doctype and commentary
    after the closing tag are cut off. Raises ContentContractError when
    either boundary is missing. Running it on its own output is a no-op.
    """
    html = strip_fences(raw)
    lowered = html.lower()

    start = lowered.find(DOCTYPE_MARKER)
    if start == -1:
        logger.error(f"{label} has no DOCTYPE: {(raw or '')[:200]!r}")
        raise ContentContractError(
            f"{label} does not contain a DOCTYPE declaration"
        )
    if start > 0:
        html = html[start:]
        lowered = lowered[start:]

    end = lowered.rfind(CLOSING_TAG)
    if end == -1:
        logger.error(f"{label} has no closing </html>: {(raw or '')[:200]!r}")
        raise ContentContractError(
            f"{label} does not contain a closing </html> tag"
        )
    end += len(CLOSING_TAG)
    if end < len(html):
        html = html[:end]

    return html
