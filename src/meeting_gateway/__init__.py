"""Meeting gateway -- MCP tools for driving a voice-enabled meeting bot.

Provides join/listen/speak/chat/status/leave tools over stdio, backed by
either the Groupthink platform (hosted mode) or Recall.ai plus OpenAI
speech synthesis (direct mode).
"""
