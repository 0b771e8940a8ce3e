# helpdesk/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from helpdesk.api.routes import (
    health,
    auth,
    users,
    tickets,
    queues,
)

from helpdesk.core.config import settings
from helpdesk.core.errors import register_exception_handlers
from helpdesk.core.logging import setup_logging, RequestIdMiddleware

setup_logging(settings.log_level)

app = FastAPI(
    title="Helpdesk API",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url=None,
    openapi_url="/api/openapi.json",
)

# ==== Middlewares ====
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestIdMiddleware)

# у prod текст несподіваних помилок не віддаємо клієнту
register_exception_handlers(app, hide_details=settings.is_production)

# ==== API під /api ====
app.include_router(health.router,  prefix="/api",         tags=["health"])
app.include_router(auth.router,    prefix="/api/auth",    tags=["auth"])
app.include_router(users.router,   prefix="/api/users",   tags=["users"])
app.include_router(tickets.router, prefix="/api/tickets", tags=["tickets"])
app.include_router(queues.router,  prefix="/api/queues",  tags=["queues"])


@app.get("/", include_in_schema=False)
def root():
    return {"message": "Welcome to the Ticketing API", "docs": "/api/docs"}


def run() -> None:
    """Точка входу `helpdesk-api`: uvicorn на settings.port."""
    import uvicorn

    uvicorn.run("helpdesk.main:app", host="0.0.0.0", port=settings.port, log_config=None)
