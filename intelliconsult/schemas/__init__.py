# Schemas package (re-export feature modules for stable imports)
from .auth.auth import *
from .users.user import *
from .appointments.appointment import *
from .prescriptions.prescription import *
from .admin.admin import *
from .doctors.doctor import *
from .schedule.schedule import *
from .reviews.review import *
from .common.common import *
