# src/config.py
# Переменные окружения приложения. Читаются один раз при импорте (.env поддерживается).

from __future__ import annotations

import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///./challenges.db"
LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()

# Секрет бота для проверки initData; проверяется лениво, при первом запросе с авторизацией
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")

CORS_ORIGINS = [
    o.strip()
    for o in (os.getenv("CORS_ORIGINS") or "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]
