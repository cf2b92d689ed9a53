"""
Starter tables advertised in the agent instructions.

The service never depends on these; they exist so a fresh database has
somewhere for agents to put posts, settings, users and comments.
"""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, String, Text, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class PostRow(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    content = Column(Text, nullable=False, default="")
    published = Column(Integer, nullable=False, default=0)
    created_at = Column(String, nullable=False, server_default=func.current_timestamp())


class SettingRow(Base):
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=True)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)
    created_at = Column(String, nullable=False, server_default=func.current_timestamp())


class CommentRow(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    author = Column(String, nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(String, nullable=False, server_default=func.current_timestamp())


def create_starter_tables(engine: Engine) -> list[str]:
    """Create any missing starter tables and return their names."""
    Base.metadata.create_all(engine)
    return sorted(Base.metadata.tables)
