import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import router as auth_router
from blogs import router as blogs_router
from contacts import router as contacts_router
from core import config, db
from core.errors import register_exception_handlers
from courses import router as courses_router
from subscribers import router as subscribers_router

logging.basicConfig(
    level=config.log_level(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Open the Mongo client once per process.
    await db.init_client()
    try:
        yield
    finally:
        await db.close_client()


app = FastAPI(lifespan=lifespan)

# Allow the frontend dev server (or CORS_ORIGINS) to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router.router, prefix="/api/auth", tags=["auth"])
app.include_router(courses_router.router, prefix="/api/courses", tags=["courses"])
app.include_router(blogs_router.router, prefix="/api/blogs", tags=["blogs"])
app.include_router(contacts_router.router, prefix="/api/contact", tags=["contacts"])
app.include_router(subscribers_router.router, prefix="/api/subscribe", tags=["subscribers"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "course-catalog api"}
