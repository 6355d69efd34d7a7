"""Upstream gateway -- one MeetingBackend interface, Direct and Hosted variants.

Direct mode talks to Recall.ai and OpenAI speech synthesis with operator
credentials. Hosted mode talks to the Groupthink platform, which fronts
both. The variant is chosen once at startup by select_backend().
"""
