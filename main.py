from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import time
import logging

from routes import activities, corrections, activity_stats, grading_policy

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Correction Grading API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    t0 = time.perf_counter()
    logger.info("REQUEST  %s %s", request.method, request.url.path)
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - t0) * 1000
    logger.info("RESPONSE %s %s: status %d, time %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response

app.include_router(activities.router, prefix="/api")
app.include_router(corrections.router, prefix="/api")
app.include_router(activity_stats.router, prefix="/api")
app.include_router(grading_policy.router, prefix="/api")


@app.get("/")
def root():
    return {"status": "ok", "message": "Correction Grading API"}
