"""Test package for Smart Chat.

Structure:
    - unit/: Renderer, session store, controller, client and agent tests
    - integration/: HTTP endpoint and end-to-end conversation flows

Uses fake completion services at the provider boundary; everything else
runs for real. Leverages pytest with pytest-check for soft assertions.
"""
