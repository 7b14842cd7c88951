"""Image generation adapter package.

Scope:
    Provides the Gemini image-editing client, data-URI helpers, and the service
    functions that build clients and fetch the example photo.

Non-goals:
    - No multi-image responses.
    - No retries or response caching.
"""
