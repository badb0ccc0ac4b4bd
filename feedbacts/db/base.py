# Imports every model so Base.metadata knows all tables before create_all.
from feedbacts.db.database import Base  # noqa: F401
from feedbacts.models import user, student, instructor, alumni, employer  # noqa: F401
from feedbacts.models import form, form_response, form_assignment  # noqa: F401
from feedbacts.models import course, promotion, system_setting  # noqa: F401
