# src/models/user.py

from sqlalchemy import BigInteger, Column, DateTime, Integer, String, func

from src.db import Base


class User(Base):
    """
    Студент платформы. Идентичность приходит из Telegram WebApp;
    челленджам нужны только имя для текстов, аватар и целевой экзамен.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    telegram_id = Column(BigInteger, unique=True, nullable=False, index=True)
    username = Column(String(64), index=True)
    first_name = Column(String(128))
    last_name = Column(String(128))
    # собирается из Telegram-профиля, см. services.users.compose_name
    name = Column(String(256), index=True)
    photo_url = Column(String)
    target_exam = Column(String(64), comment="Экзамен по умолчанию для фильтра вопросов")
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<User {self.id} tg={self.telegram_id} {self.name!r}>"
