from fastapi import APIRouter
from app.api.v1.appointments import routes as appointments
from app.api.v1.samples import routes as samples

api_router = APIRouter()
api_router.include_router(samples.router, prefix="/samples", tags=["samples"])
api_router.include_router(samples.order_router, prefix="/orders", tags=["orders"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
