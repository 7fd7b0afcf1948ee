"""
Main API router
"""
from fastapi import APIRouter

from app.api.v1 import (
    health,
    version,
    auth,
    contravention_types,
    contraventions,
    points,
    escalations,
    training,
    fiscal_year,
    notifications,
    employees,
    reports,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(version.router, tags=["version"])
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
api_router.include_router(contravention_types.router, prefix="/contravention-types", tags=["contravention-types"])
api_router.include_router(contraventions.router, prefix="/contraventions", tags=["contraventions"])
api_router.include_router(points.router, prefix="/points", tags=["points"])
api_router.include_router(escalations.router, prefix="/escalations", tags=["escalations"])
api_router.include_router(training.router, prefix="/training", tags=["training"])
api_router.include_router(fiscal_year.router, prefix="/fiscal-year", tags=["fiscal-year"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
