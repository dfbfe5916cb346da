# Routers package
from . import auth_router
from . import users_router
from . import doctors_router
from . import appointments_router
from . import prescriptions_router
from . import schedule_router
from . import reviews_router
from . import admin_router
from . import insights_router

__all__ = [
    "auth_router",
    "users_router",
    "doctors_router",
    "appointments_router",
    "prescriptions_router",
    "schedule_router",
    "reviews_router",
    "admin_router",
    "insights_router",
]
