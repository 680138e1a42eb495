"""API v1 router."""

from fastapi import APIRouter

from printbroker.api.v1.endpoints import (
    health,
    jobs,
    payments,
    pricing,
    purchase_orders,
    webhooks,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(
    purchase_orders.router, prefix="/jobs/{job_id}/purchase-orders", tags=["purchase-orders"]
)
api_router.include_router(payments.router, prefix="/jobs/{job_id}/payments", tags=["payments"])
api_router.include_router(pricing.router, prefix="/pricing", tags=["pricing"])
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
