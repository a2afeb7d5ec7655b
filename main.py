# file: main.py

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gifttracker.controllers.contacts import router as contacts_router
from gifttracker.controllers.events import router as events_router
from gifttracker.controllers.gifts import router as gifts_router
from gifttracker.controllers.images import router as images_router
from gifttracker.controllers.notifications import router as notifications_router
from gifttracker.controllers.users import router as users_router
from gifttracker.database.connection import init_db
from gifttracker.services.monitoring import Monitor, RequestTimingMiddleware

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Gift Tracker API")

app.state.monitor = Monitor()

app.add_middleware(RequestTimingMiddleware, monitor=app.state.monitor)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(contacts_router, prefix="/contacts", tags=["contacts"])
app.include_router(events_router, prefix="/events", tags=["events"])
app.include_router(gifts_router, prefix="/gifts", tags=["gifts"])
app.include_router(users_router, prefix="/users", tags=["users"])
app.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
app.include_router(images_router, prefix="/images", tags=["images"])


# Every error body is {"message": ...}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        return JSONResponse(status_code=400, content={"message": "Unsupported method"})
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail},
                        headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(status_code=400, content={"message": f"Invalid request: {errors}"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


@app.get("/")
async def root():
    return {"message": "Gift Tracker API is running"}


@app.on_event("startup")
async def startup_event():
    await init_db()
