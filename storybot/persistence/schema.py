from __future__ import annotations
from datetime import datetime
from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

class Base(DeclarativeBase):
    pass

class ContextRow(Base):
    __tablename__ = "contexts"
    key: Mapped[str] = mapped_column(String, primary_key=True)
    channel: Mapped[str] = mapped_column(String, index=True)
    chat_id: Mapped[str] = mapped_column(String, index=True)
    interaction: Mapped[str | None] = mapped_column(String, nullable=True)
    items: Mapped[dict] = mapped_column(JSON, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime, index=True)
