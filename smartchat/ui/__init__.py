"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Session sidebar: create, switch, rename, delete
    - Transcript display with streaming updates
    - Typing indicator, abort and reset controls

Contains no business logic. Delegates everything to the conversation
controller.
"""
