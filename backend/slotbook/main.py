import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .deps import AdminSessions, get_slot_store
from .routers import deep_link, slots
from .services.slots import NotFound, SlotStore, StoreUnavailable, ValidationError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Slot Booking API")
app.state.admin_sessions = AdminSessions()

app.include_router(slots.router)
app.include_router(deep_link.router)


# ===== Errors =====

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc)},
    )


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc)},
    )


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.warning("%s %s → store unavailable (%s)", request.method, request.url.path, exc.operation)
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc), "operation": exc.operation},
    )


@app.get("/health")
def health(store: SlotStore = Depends(get_slot_store)):
    return {"store": store.name}
