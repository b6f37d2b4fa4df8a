"""Integration tests for the chat endpoint and full conversation flows."""
