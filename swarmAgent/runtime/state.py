"""State definition for an agent's turn loop graph."""

from __future__ import annotations

from typing import Annotated, List, TypedDict

from langchain_core.messages import BaseMessage
from langgraph.graph import add_messages


class AgentState(TypedDict, total=False):
    """Conversation carried through one ``ask``.

    The runner passes the agent's full history in and keeps the returned
    messages as the new history; the graph itself holds nothing between asks.
    """

    messages: Annotated[List[BaseMessage], add_messages]
