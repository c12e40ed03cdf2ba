from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ai.tool_call_executor import execute_tool_call
from config import settings
from db.database import get_db
from services.record_store import SqlAlchemyHealthRecordStore
from tools.definitions import to_anthropic_tools, to_gemini_tools, to_openai_tools

router = APIRouter(prefix="/tools", tags=["tools"])


class ToolCallBody(BaseModel):
    arguments: Any = None


def get_caller_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity as established by the upstream authentication layer."""
    caller = (x_user_id or "").strip()
    if not caller:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return caller


@router.get("")
def list_tools(
    provider: str = Query("openai"),
    include_search: Optional[bool] = Query(None),
):
    with_search = settings.ENABLE_WEB_SEARCH if include_search is None else include_search
    name = provider.strip().lower()
    if name == "openai":
        tools = to_openai_tools(include_web_search=with_search)
    elif name in {"google", "gemini"}:
        tools = to_gemini_tools(include_google_search=with_search)
    elif name == "anthropic":
        tools = to_anthropic_tools()
    else:
        raise HTTPException(status_code=400, detail=f"Unknown provider: {provider}")
    return {"provider": name, "tools": tools}


@router.post("/{tool_name}")
def call_tool(
    tool_name: str,
    body: Optional[ToolCallBody] = None,
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
):
    store = SqlAlchemyHealthRecordStore(db)
    result = execute_tool_call(tool_name, body.arguments if body else None, caller_id, store)
    return result.to_dict()
