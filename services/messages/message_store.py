# services/messages/message_store.py
"""
Borrower/servicer messages, seeded from ``<data_dir>/messages.json``
(``{"messages": [...]}``) and kept in memory for the life of the app.
"""
from __future__ import annotations

import itertools
import json
import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

MESSAGES_FILENAME = "messages.json"
DEFAULT_SENDER = {"name": "Portfolio Services", "email": "services@lender.com"}
FIRST_MESSAGE_NUMBER = 101


class Contact(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    email: str = ""


class Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    sender: Optional[Contact] = Field(default=None, alias="from")
    to: Optional[Contact] = None
    subject: str = ""
    body: str = ""
    priority: int = 0
    sent_at: Optional[str] = Field(default=None, alias="sentAt")
    is_read: bool = Field(default=False, alias="isRead")
    folder: str = "inbox"

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def _sent_at_key(message: Message) -> datetime:
    try:
        parsed = datetime.fromisoformat((message.sent_at or "").replace("Z", "+00:00"))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def read_messages_file(data_dir: str) -> List[Message]:
    """Seed messages; a missing or unreadable file means an empty mailbox."""
    path = os.path.join(data_dir, MESSAGES_FILENAME)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except (OSError, ValueError) as exc:
        logger.warning("messages.load_failed path=%s err=%s", path, exc)
        return []

    raw = payload.get("messages") if isinstance(payload, dict) else None
    if not isinstance(raw, list):
        return []

    out: List[Message] = []
    for entry in raw:
        try:
            out.append(Message.model_validate(entry))
        except ValidationError as exc:
            logger.warning("messages.skip_invalid path=%s err=%s", path, exc.errors()[:1])
    return out


class MessageStore:
    def __init__(self, messages: Optional[List[Message]] = None):
        self._messages: List[Message] = list(messages or [])
        self._counter = itertools.count(FIRST_MESSAGE_NUMBER)

    @classmethod
    def from_data_dir(cls, data_dir: str) -> "MessageStore":
        messages = read_messages_file(data_dir)
        logger.info("messages.loaded dir=%s count=%s", data_dir, len(messages))
        return cls(messages)

    def list_folder(self, folder: str = "inbox") -> List[Message]:
        matching = [m for m in self._messages if m.folder == folder]
        return sorted(matching, key=_sent_at_key, reverse=True)

    def unread_count(self) -> int:
        return sum(1 for m in self._messages if m.folder == "inbox" and not m.is_read)

    def get(self, message_id: str) -> Optional[Message]:
        return next((m for m in self._messages if m.id == message_id), None)

    def send(
        self,
        *,
        to: Dict[str, Any],
        subject: str,
        body: str,
        sender: Optional[Dict[str, Any]] = None,
        priority: int = 0,
    ) -> Message:
        message = Message(
            id=f"msg-{int(time.time() * 1000)}-{next(self._counter)}",
            sender=Contact.model_validate(sender or DEFAULT_SENDER),
            to=Contact.model_validate(to),
            subject=subject,
            body=body,
            priority=priority,
            sent_at=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            is_read=True,
            folder="sent",
        )
        self._messages.append(message)
        return message

    def mark_read(self, message_id: str) -> bool:
        message = self.get(message_id)
        if message is None:
            return False
        message.is_read = True
        return True

    def delete(self, message_id: str) -> bool:
        for index, message in enumerate(self._messages):
            if message.id == message_id:
                del self._messages[index]
                return True
        return False
