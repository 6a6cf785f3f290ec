"""
Chat Module
"""
from .client import ChatInput, ChatResponse, WebhookChatClient, WebhookHealth

__all__ = ["ChatInput", "ChatResponse", "WebhookChatClient", "WebhookHealth"]
