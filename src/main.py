# src/main.py
# Главная точка входа FastAPI: челленджи между студентами.
#  • /api/challenges, /api/challenge-invites, /api/notifications, /api/follows
#  • ошибки сервисов (ChallengeError) отдаются как {"detail": {"code", "message"}}

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src import config
from src.db import engine  # инициализация БД/пула соединений  # noqa: F401
from src.services.errors import ChallengeError, TransientStoreError

from src.routers.auth import router as auth_router
from src.routers.users import router as users_router
from src.routers.follows import router as follows_router
from src.routers.challenges import router as challenges_router
from src.routers.challenge_invites import router as challenge_invites_router
from src.routers.notifications import router as notifications_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

app = FastAPI(
    title="Exam Prep Challenges Backend",
    description="Челленджи между студентами: создание, приглашения, ответы, лобби и активные челленджи.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ChallengeError)
async def challenge_error_handler(request: Request, exc: ChallengeError):
    detail = exc.to_detail()
    if isinstance(exc, TransientStoreError):
        if request.method == "GET":
            # на чтении это не авария: просим фронт повторить
            log.info("read %s aborted by store: %s", request.url.path, exc.message)
            detail = {"code": "could_not_load", "message": "Could not load, retry."}
        else:
            log.warning("write %s failed, store unavailable: %s", request.url.path, exc.message)
    elif exc.status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


# --- Подключение роутеров ---
app.include_router(auth_router,              prefix="/api/auth",              tags=["Авторизация"])
app.include_router(users_router,             prefix="/api/users",             tags=["Пользователи"])
app.include_router(follows_router,           prefix="/api/follows",           tags=["Подписки"])
app.include_router(challenges_router,        prefix="/api/challenges",        tags=["Челленджи"])
app.include_router(challenge_invites_router, prefix="/api/challenge-invites", tags=["Приглашения в челленджи"])
app.include_router(notifications_router,     prefix="/api/notifications",     tags=["Уведомления"])

@app.get("/")
def root():
    """Простой healthcheck."""
    return {"message": "Challenges backend работает!", "docs": "/docs"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("src.main:app", host="0.0.0.0", port=8000, reload=False)
