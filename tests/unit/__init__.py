"""Unit tests for individual components in isolation.

Coverage:
    - rendering/: Markdown escaping and block/inline transforms
    - sessions/: Loading, migration, mutations and persistence
    - conversation/: Send, stream, fallback, abort and reset
    - client/, agent/: Completion outcomes and configuration

Uses fakes for network collaborators. Leverages pytest-check for
multiple assertions per test.
"""
