import uvicorn
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from auditwise.api.sessions import router as sessions_router
from auditwise.api.issues import router as issues_router
from auditwise.api.review import router as review_router
from auditwise.api.share import router as share_router
from auditwise.assets.resolver import AssetResolver
from auditwise.core.config import CORS_ORIGINS
from auditwise.llm.client import GeminiClient
from auditwise.services.audit_store import InMemoryAuditStore
from auditwise.state.audit_session import SessionStore
from auditwise.utils.logging_config import setup_logging

# Initialize enhanced logging
setup_logging(level=logging.INFO)
logger = logging.getLogger("main")


# ---------------------------------------------------------------------------
# Logging Middleware
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Incoming: {request.method} {request.url.path} from {client_host}")

        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"Outgoing: {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Time: {process_time:.2f}ms"
            )
            return response
        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            logger.error(f"Request failed: {request.method} {request.url.path} - Error: {str(e)}")
            raise e


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    app.state.sessions.clear()
    await app.state.gemini.close()
    await app.state.resolver.close()
    logger.info("Outbound HTTP clients closed")


def create_app() -> FastAPI:
    app = FastAPI(title="Auditwise Design Audit API", lifespan=lifespan)

    # One instance of each per app, shared by every request
    app.state.sessions = SessionStore()
    app.state.gemini = GeminiClient()
    app.state.resolver = AssetResolver()
    app.state.audit_store = InMemoryAuditStore()

    app.add_middleware(LoggingMiddleware)

    # -----------------------------------------------------------------------
    # CORS: allow the browser client to call the backend
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    # Register routers
    app.include_router(sessions_router)
    app.include_router(issues_router)
    app.include_router(review_router)
    app.include_router(share_router)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
