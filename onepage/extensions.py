"""
Deferred extension instances.

Created here, bound to the app in create_app() via init_app().

External collaborators (model client, site worker, draft store) are not
module globals: create_app() constructs them and registers a Services
container under app.extensions["onepage"]. Request code reaches them
through get_services().
"""

from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # No global limit — we apply per-route
    storage_uri="memory://",
)


class Services:
    """Explicitly constructed collaborators, one set per app instance."""

    def __init__(self, model_client=None, site_worker=None, draft_store=None):
        self.model_client = model_client
        self.site_worker = site_worker
        self.draft_store = draft_store

    def __repr__(self):
        return (
            f"<Services model={type(self.model_client).__name__} "
            f"worker={type(self.site_worker).__name__} "
            f"drafts={type(self.draft_store).__name__}>"
        )


def get_services():
    """Return the Services registered on the current app."""
    return current_app.extensions["onepage"]


def require_service(name):
    """Return a registered collaborator or raise InternalError if unconfigured."""
    from onepage.errors import InternalError

    service = getattr(get_services(), name, None)
    if service is None:
        current_app.logger.error(f"Service {name} is not configured")
        raise InternalError("Server configuration error")
    return service
