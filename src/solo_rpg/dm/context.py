"""Conversation history shaping for chat-style narrative backends.

Chat APIs want alternating user/assistant turns that open with a user
turn. Stored history has system notices (rolls, XP, damage) and may hold
several narrations in a row, so it is filtered and merged first.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel

from solo_rpg.models.campaign import Message, MessageRole


CONVERSATION_STARTED = "[Conversation started]"


class ChatTurn(BaseModel):
    """One entry of a chat-style history."""

    role: Literal["user", "assistant"]
    content: str


def assemble_message_history(messages: Sequence[Message], limit: int = 20) -> list[ChatTurn]:
    """Build an alternating user/assistant history from stored messages.

    Only the last ``limit`` messages are considered; system messages among
    them are dropped. Consecutive turns from the same side are joined with
    a blank line.

    Args:
        messages: Stored campaign messages, oldest first.
        limit: Size of the trailing window.

    Returns:
        Chat turns starting with a user turn, or an empty list.
    """
    window = list(messages)[-limit:] if limit > 0 else []

    turns: list[ChatTurn] = []
    for message in window:
        if message.role == MessageRole.SYSTEM:
            continue
        role = "user" if message.role == MessageRole.USER else "assistant"
        if turns and turns[-1].role == role:
            turns[-1] = ChatTurn(role=role, content=f"{turns[-1].content}\n\n{message.content}")
        else:
            turns.append(ChatTurn(role=role, content=message.content))

    if turns and turns[0].role != "user":
        turns.insert(0, ChatTurn(role="user", content=CONVERSATION_STARTED))
    return turns


__all__ = [
    "CONVERSATION_STARTED",
    "ChatTurn",
    "assemble_message_history",
]
