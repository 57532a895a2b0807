from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import settings
from app_logger import attach_stream_handler, get_logger
from database import init_db
from errors import register_error_handlers
from routes_bookings import router as bookings_router
from routes_rooms import router as rooms_router
from routes_spaces import router as spaces_router
from routes_users import router as users_router

log = get_logger("app")

app = FastAPI(title="Room Booking API")


@app.on_event("startup")
async def on_startup():
    attach_stream_handler()
    await init_db()
    log.info("Room Booking API started")


@app.get("/")
async def root():
    return {"message": "Hello world!"}


app.include_router(users_router)
app.include_router(spaces_router)
app.include_router(rooms_router)
app.include_router(bookings_router)

register_error_handlers(app)


@app.exception_handler(status.HTTP_404_NOT_FOUND)
async def unknown_route(request: Request, exc):
    # Domain NotFoundErrors have their own handler; this only sees routing misses
    detail = getattr(exc, "detail", None)
    if detail and detail != "Not Found":
        return JSONResponse(status_code=404, content={"message": detail})
    return JSONResponse(
        status_code=404,
        content={"message": "No route with that path found!", "attemptedPath": request.url.path},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    # Rotated session token comes back in this header
    expose_headers=[settings.TOKEN_HEADER],
)
