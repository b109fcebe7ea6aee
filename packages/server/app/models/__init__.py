# SQLModel definitions: imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, CreatedAtMixin, OrgScopedMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .user import User  # noqa: F401
from .customer import Customer  # noqa: F401
from .lead import Lead  # noqa: F401
from .appointment import Appointment  # noqa: F401
from .deal import Deal  # noqa: F401
