# rejabot/web/server.py
from __future__ import annotations

from apscheduler.schedulers.base import BaseScheduler
from fastapi import APIRouter, FastAPI, Request

from rejabot.web.errors import unhandled_exception_handler

router = APIRouter()


def _iso(dt):
    # у ещё не запущенного планировщика next_run_time не выставлен
    return dt.isoformat() if dt else None


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/scheduler/jobs")
async def scheduler_jobs(request: Request):
    scheduler: BaseScheduler = request.app.state.scheduler
    jobs = [
        {
            "id": job.id,
            "next_run_time": _iso(getattr(job, "next_run_time", None)),
        }
        for job in scheduler.get_jobs()
    ]
    return {
        "running": scheduler.running,
        "jobs": jobs,
        "ledger_size": len(request.app.state.ledger),
    }


def create_app(scheduler: BaseScheduler, ledger) -> FastAPI:
    app = FastAPI(title="rejabot status")
    app.state.scheduler = scheduler
    app.state.ledger = ledger
    app.include_router(router)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    return app
