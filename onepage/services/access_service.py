"""Access verifier — authenticate an edit session against the worker.

The worker owns the credential store. This side only rejects requests
that are obviously malformed, then passes the worker's verdict through
unchanged (AuthorityError carries its status and message verbatim).
"""

import logging

from onepage.errors import ValidationError

logger = logging.getLogger(__name__)


def verify_access(subdomain, password, site_worker):
    """Return the worker's site payload {subdomain, email, formData, html}.

    Raises ValidationError if either credential is missing, AuthorityError
    if the worker rejects them.
    """
    if not isinstance(subdomain, str) or not subdomain.strip():
        raise ValidationError("Please enter your subdomain and password")
    if not isinstance(password, str) or not password:
        raise ValidationError("Please enter your subdomain and password")

    subdomain = subdomain.strip().lower()
    result = site_worker.verify(subdomain, password)
    logger.info(f"Edit session verified for {subdomain}")
    return result
