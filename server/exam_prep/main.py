import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from exam_prep.config import settings
from exam_prep.database import init_db

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s  %(levelname)s  %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.cors_origins != "*",
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    init_db()

    logger.info("🚀 %s is starting...", settings.app_name)
    logger.info("📚 Database: %s", settings.database_url)
    if settings.llm_configured:
        logger.info("🤖 AI models: %s", ", ".join(settings.llm_models_list))
    else:
        logger.warning("🔑 GROQ_API_KEY is not set, AI generation will serve fallback templates")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.api_version,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "llm_configured": settings.llm_configured}


# Import and include routers
from exam_prep.routes import data, functions  # noqa: E402

app.include_router(functions.router, prefix="/functions/v1", tags=["Functions"])
app.include_router(data.router, tags=["Data"])
