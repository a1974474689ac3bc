"""
Menu text scraping.

Responsibilities:
- Score free text fragments on how likely they are to be menu items.
- Pull candidate fragments from a restaurant page with a fixed selector list.
- Try a cheap static fetch first, then a headless browser render.
- Keep only confident menu text so the AI extraction step sees less noise.
"""
