import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config.logging import configure_logging
from app.config.settings import AppConfig
from app.database import Base, engine
from app.routers import auth, team, task, dashboard
from app.utils.responses import register_exception_handlers

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Mini Jira API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=AppConfig.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Route registration
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(team.router, prefix="/teams", tags=["Teams"])
# /tasks/dashboard must be matched before /tasks/{task_id}
app.include_router(dashboard.router, prefix="/tasks", tags=["Dashboard"])
app.include_router(task.router, prefix="/tasks", tags=["Tasks"])

@app.on_event("startup")
def startup_event():
    """Create missing tables when running without migrations"""
    logger.info("Starting Mini Jira API...")
    if AppConfig.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")

# Root route
@app.get("/")
def read_root():
    return {"message": "Mini Jira API"}

@app.get("/health")
def health():
    return {"status": "ok"}
