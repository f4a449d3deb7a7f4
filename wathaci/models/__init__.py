# Models package: import all models here so Alembic can discover them.

from wathaci.models.payment import Payment, Transaction  # noqa: F401
from wathaci.models.subscription import UserSubscription  # noqa: F401
from wathaci.models.booking import ServiceBooking  # noqa: F401
from wathaci.models.notification import Notification  # noqa: F401
from wathaci.models.webhook_log import WebhookLog  # noqa: F401
