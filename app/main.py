import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import get_settings
from app.core.errors import register_exception_handlers
from app.core.redis import close_redis
from app.database import init_db
from app.routers import ai, auth, compiler, interviews, jobs, users

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.database_url.startswith("sqlite"):
        init_db()
    try:
        yield
    finally:
        await close_redis()


app = FastAPI(title="CodeCoach API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(interviews.router)
app.include_router(ai.router)
app.include_router(compiler.router)
app.include_router(jobs.router)


@app.get("/")
def root():
    return {"message": "CodeCoach API is running", "docs": "/docs"}
