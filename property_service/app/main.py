import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import settings
from shared.core.database import Base, property_engine
from shared.helpers.exception_handler import setup_exception_handlers
from shared.wrappers.response_wrapper import JsonResponseMiddleware

from .models.properties import properties
from .models.leasing_tenants import leases, rental_applications
from .models.tenancy import tenancy_sagas
from .router.properties import properties_router
from .router.leasing_tenants import leases_router, rental_applications_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="Property Service API")

# Create all tables
Base.metadata.create_all(bind=property_engine)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(JsonResponseMiddleware)
setup_exception_handlers(app)

# Include routers
app.include_router(properties_router.router)
app.include_router(rental_applications_router.router)
app.include_router(leases_router.router)


@app.get("/api/health")
def health():
    return {"message": "Property service is healthy", "data": {"status": "ok"}}
