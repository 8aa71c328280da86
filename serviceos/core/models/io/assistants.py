"""
Assistant I/O models for API requests and responses.

A request carries the whole visible conversation; the server keeps no chat
state between requests.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ChatTurn(BaseModel):
    """One message of the conversation as shown in the chat panel."""

    role: Literal["user", "assistant"]
    content: str = Field(min_length=1)


class AssistantRequest(BaseModel):
    messages: List[ChatTurn] = Field(min_length=1, description="Conversation so far, oldest first")

    @field_validator("messages")
    @classmethod
    def _ends_with_user(cls, value: List[ChatTurn]) -> List[ChatTurn]:
        if value[-1].role != "user":
            raise ValueError("the last message must come from the user")
        return value


class BlogAssistantResponse(BaseModel):
    content: str
    actions_taken: List[str] = Field(default_factory=list, description='One "tool: result" line per tool call')
    post_results: Optional[List[Dict[str, Any]]] = None
    created_post_id: Optional[str] = None


class FileAssistantResponse(BaseModel):
    content: str
    actions_taken: List[str] = Field(default_factory=list)
    file_results: Optional[List[Dict[str, Any]]] = None


class BlockAssistantRequest(AssistantRequest):
    site_id: str
    block_type: str = Field(min_length=1, description="Block kind, e.g. hero or testimonials")
    block_data: Dict[str, Any] = Field(default_factory=dict, description="Current data of the block")
    page_id: Optional[str] = Field(default=None, description="Persist the update into this page")
    block_id: Optional[str] = Field(default=None, description="Block of ``page_id`` to update")


class BlockAssistantResponse(BaseModel):
    content: str
    updated_data: Optional[Dict[str, Any]] = None
