"""Nodes of the deep interview LangGraph."""
from . import collect, decide_end, decide_next, tagging

__all__ = ["collect", "decide_end", "decide_next", "tagging"]
