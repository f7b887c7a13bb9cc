"""API layer: read model handed to the rendering surface.

Rules:

1. The view layer reads ListViewSnapshot and calls controller intents; nothing else
2. No fetching and no state mutation here
3. Return Pydantic models only
"""
