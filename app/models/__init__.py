# Portaria Única: Database Models
# Import all models here for SQLAlchemy discovery

from app.models.vehicle_entry import VehicleEntry                                 # noqa
from app.models.notification import Notification                                 # noqa
from app.models.user import User                                                 # noqa
from app.models.user_session import UserSession                                  # noqa
from app.models.reference import Person, TransportCompany, InternalDestination   # noqa
