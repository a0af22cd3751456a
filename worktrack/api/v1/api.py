from fastapi import APIRouter
from worktrack.api.v1.endpoints import (
    auth, health, profiles, clients, requests, time_entries, reports, activity
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(profiles.router, prefix="/profiles", tags=["profiles"])

# Resource endpoints
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(requests.router, prefix="/requests", tags=["requests"])
api_router.include_router(time_entries.router, prefix="/time-entries", tags=["time"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(activity.router, prefix="/activity", tags=["activity"])
