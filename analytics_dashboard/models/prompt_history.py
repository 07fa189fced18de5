"""
Prompt History Model - remote mirror of the client's local history cache
"""
from typing import List, Optional
from datetime import datetime
from sqlalchemy import Column, JSON, Text
from sqlmodel import SQLModel, Field


class PromptHistory(SQLModel, table=True):
    """
    One prompt submission and its outcome.

    The id is generated by the client and never changes. Rows are owned by
    the user that created them; ``chart_types`` is the snapshot of what was
    rendered when the prompt ran.
    """
    __tablename__ = "prompt_history"

    id: str = Field(primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    prompt: str = Field(sa_column=Column(Text, nullable=False))
    sql_query: Optional[str] = Field(default=None, sa_column=Column(Text))
    timestamp: datetime = Field(index=True)
    execution_time: Optional[int] = None  # ms
    status: str = Field(default="pending")  # 'success' | 'error' | 'pending'
    result_count: Optional[int] = None
    chart_types: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    is_favorite: bool = Field(default=False)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
