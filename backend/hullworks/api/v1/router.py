"""HULLWORKS MES — API v1 router aggregation."""
from fastapi import APIRouter

from hullworks.api.v1.endpoints import (
    auth,
    departments,
    equipment,
    metrics,
    notes,
    product_configurations,
    products,
    routing_versions,
    stations,
    supervisor,
    users,
    work_centers,
    work_orders,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(departments.router, prefix="/admin/departments", tags=["admin"])
api_router.include_router(work_centers.router, prefix="/admin/work-centers", tags=["admin"])
api_router.include_router(stations.router, prefix="/admin/stations", tags=["admin"])
api_router.include_router(equipment.router, prefix="/admin/equipment", tags=["admin"])
api_router.include_router(users.router, prefix="/admin/users", tags=["admin"])
api_router.include_router(metrics.router, prefix="/admin/metrics", tags=["admin"])
api_router.include_router(products.router, prefix="/product-models", tags=["products"])
api_router.include_router(products.sku_router, prefix="/sku", tags=["products"])
api_router.include_router(product_configurations.router, prefix="/product-configurations", tags=["products"])
api_router.include_router(routing_versions.router, prefix="/routing-versions", tags=["routing"])
api_router.include_router(work_orders.router, prefix="/work-orders", tags=["work-orders"])
api_router.include_router(notes.router, prefix="/notes", tags=["notes"])
api_router.include_router(supervisor.router, prefix="/supervisor", tags=["supervisor"])
api_router.include_router(supervisor.queue_router, prefix="/queues", tags=["queues"])
