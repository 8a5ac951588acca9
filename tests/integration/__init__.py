"""
Integration tests that talk to real services.

These tests are slow and costly - run selectively:
    pytest tests/integration -v

Requires API keys in .env:
    - GOOGLE_API_KEY (for page rendering, and text if it is the only key)
    - ANTHROPIC_API_KEY or OPENAI_API_KEY (for text generation)
Redis tests need a server at REDIS_URL.
"""
