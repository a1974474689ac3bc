"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Extract menu items and allergen tags from a menu photo or scraped text.
- Summarize scraped menu items for allergy-conscious readers.
- Graceful fallback when the LLM is unavailable or returns invalid output.
"""
