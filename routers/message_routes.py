# message_routes.py
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from services.messages.message_store import MessageStore

logger = logging.getLogger(__name__)

router = APIRouter()


class SendMessageReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    to: Optional[Dict[str, Any]] = None
    sender: Optional[Dict[str, Any]] = Field(default=None, alias="from")
    subject: Optional[str] = None
    body: Optional[str] = None
    priority: int = 0


def get_message_store(request: Request) -> MessageStore:
    return request.app.state.message_store


@router.get("")
async def list_messages(
    folder: str = Query("inbox"),
    store: MessageStore = Depends(get_message_store),
):
    return {"messages": [m.to_response() for m in store.list_folder(folder)]}


@router.get("/unread-count")
async def unread_count(store: MessageStore = Depends(get_message_store)):
    return {"count": store.unread_count()}


@router.get("/{message_id}")
async def get_message(message_id: str, store: MessageStore = Depends(get_message_store)):
    message = store.get(message_id)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")
    return message.to_response()


@router.post("/send")
async def send_message(req: SendMessageReq, store: MessageStore = Depends(get_message_store)):
    if not req.to or not req.subject or not req.body:
        raise HTTPException(status_code=400, detail="Missing required fields: to, subject, body")

    message = store.send(
        to=req.to,
        subject=req.subject,
        body=req.body,
        sender=req.sender,
        priority=req.priority,
    )
    logger.info("messages.sent id=%s priority=%s", message.id, message.priority)
    return message.to_response()


@router.post("/{message_id}/read")
async def mark_read(message_id: str, store: MessageStore = Depends(get_message_store)):
    if not store.mark_read(message_id):
        raise HTTPException(status_code=404, detail="Message not found")
    return {"success": True}


@router.delete("/{message_id}")
async def delete_message(message_id: str, store: MessageStore = Depends(get_message_store)):
    if not store.delete(message_id):
        raise HTTPException(status_code=404, detail="Message not found")
    logger.info("messages.deleted id=%s", message_id)
    return {"success": True}
