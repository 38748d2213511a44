# /realty_intake/main.py

import time
import uvicorn
from fastapi import FastAPI, Request

from realty_intake.config.settings import settings
from realty_intake.utils.lifecycle import lifespan
from realty_intake.utils.metrics import response_time_histogram
from realty_intake.routes import public, webhooks

app = FastAPI(
    title="Realty Intake WhatsApp Bot",
    version="1.0.0",
    description="WhatsApp questionnaire bot that collects buy/sell/rent property leads",
    lifespan=lifespan,
    openapi_url="/openapi.json" if settings.environment != "production" else None,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url=None,
)


@app.middleware("http")
async def performance_middleware(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response_time_histogram.labels(endpoint=request.url.path).observe(process_time)
    response.headers["X-Process-Time"] = str(process_time)
    return response


# --- API Routers ---
app.include_router(public.router)
app.include_router(webhooks.router)

# --- Main Entry Point for Uvicorn (for local development) ---
if __name__ == "__main__":
    uvicorn.run(
        "realty_intake.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
    )
