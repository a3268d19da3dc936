"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from horeca.api.auth import router as auth_router
from horeca.api.employees import router as employees_router
from horeca.api.employee_status import router as employee_status_router
from horeca.api.health_records import router as health_records_router
from horeca.api.equipment import router as equipment_router
from horeca.api.temperature import router as temperature_router
from horeca.api.exports import router as exports_router
from horeca.api.files import router as files_router
from horeca.api.billing import router as billing_router
from horeca.api.owner import router as owner_router
from horeca.api.partner import router as partner_router
from horeca.api.role_pages import router as role_pages_router
from horeca.api.learning import router as learning_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(employees_router)
api_router.include_router(employee_status_router)
api_router.include_router(health_records_router)
api_router.include_router(equipment_router)
api_router.include_router(temperature_router)
api_router.include_router(exports_router)
api_router.include_router(files_router)
api_router.include_router(billing_router)
api_router.include_router(owner_router)
api_router.include_router(partner_router)
api_router.include_router(role_pages_router)
api_router.include_router(learning_router)
