import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from divelog.config import settings
from divelog.routers import audit_log, auth, dives, divers, jobs, profiles, ranks, reports, users

logging.basicConfig(level=settings.log_level)

app = FastAPI(title="Dive Operations Log API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(profiles.router)
app.include_router(jobs.router)
app.include_router(divers.router)
app.include_router(ranks.router)
app.include_router(dives.router)
app.include_router(dives.events_router)   # /dive-events/{id}
app.include_router(reports.router)
app.include_router(audit_log.router)


@app.get("/health")
def health():
    return {"status": "ok", "service": "divelog"}
