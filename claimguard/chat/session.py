# claimguard/chat/session.py

"""
Knowledge-base chat: a Gemini conversation whose history is pre-loaded
with every policy document.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Literal, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser
from pydantic import BaseModel, Field

from claimguard import clients
from claimguard.knowledge_base.documents import PolicyDocument, knowledge_base_parts

SYSTEM_INSTRUCTION = """You are a helpful Insurance Assistant named "ClaimGuard AI".
Answer questions based ONLY on the policy documents provided in the chat history.
If the answer is not in the documents, state that clearly."""

WELCOME_TEXT = (
    "Hello! I am connected to your Knowledge Base. "
    "Ask me anything about your loaded policies or the claims process!"
)
EMPTY_REPLY_TEXT = "I'm sorry, I couldn't generate a response."
ERROR_REPLY_TEXT = "Sorry, I encountered an error. Please try again."


class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: Literal["user", "model"]
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def seed_history(documents: List[PolicyDocument]) -> List[BaseMessage]:
    """The opening exchange that hands the model the whole knowledge base."""
    return [
        HumanMessage(content=[
            {
                "type": "text",
                "text": "Here is the Knowledge Base containing all active insurance policy documents. "
                        "Please read them carefully.",
            },
            *knowledge_base_parts(documents),
        ]),
        AIMessage(content=(
            f"I have read and indexed the {len(documents)} provided policy documents. "
            "I am ready to answer questions based on this Knowledge Base."
        )),
    ]


class ChatSession:
    def __init__(self, documents: List[PolicyDocument], session_id: Optional[str] = None):
        self.session_id = session_id or uuid.uuid4().hex
        self.messages: List[ChatMessage] = [ChatMessage(id="welcome", role="model", text=WELCOME_TEXT)]
        self.history: List[BaseMessage] = seed_history(documents)

    def refresh_documents(self, documents: List[PolicyDocument]) -> None:
        """Restarts the model conversation on a changed knowledge base; the transcript is kept."""
        self.history = seed_history(documents)
        if documents:
            self.messages.append(ChatMessage(
                role="model",
                text=f"Knowledge Base updated. I now have access to {len(documents)} documents.",
            ))

    async def send_message_async(self, text: str) -> ChatMessage:
        """
        Sends one user turn and records the reply. Never raises: failures
        are answered with an apology and the turn is dropped from the model history.
        """
        self.messages.append(ChatMessage(role="user", text=text))
        self.history.append(HumanMessage(content=text))

        try:
            chain = clients.get_gemini_llm() | StrOutputParser()
            reply = await chain.ainvoke([SystemMessage(content=SYSTEM_INSTRUCTION), *self.history])
            reply_text = reply.strip() if reply else ""
            if reply_text:
                self.history.append(AIMessage(content=reply_text))
            else:
                self.history.pop()
            model_message = ChatMessage(role="model", text=reply_text or EMPTY_REPLY_TEXT)
        except Exception as e:
            logging.error(f"[Chat {self.session_id}] Error answering message: {e}")
            self.history.pop()
            model_message = ChatMessage(role="model", text=ERROR_REPLY_TEXT)

        self.messages.append(model_message)
        return model_message
