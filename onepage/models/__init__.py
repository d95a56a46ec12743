# Models package — import all models here so Alembic can discover them.

from onepage.models.draft import Draft  # noqa: F401
from onepage.models.site import Site  # noqa: F401
from onepage.models.subscription import Subscription  # noqa: F401
from onepage.models.stripe_event import StripeEvent  # noqa: F401
from onepage.models.ad_event import AdEvent  # noqa: F401
