"""
Application Layer - Use cases

Contains:
- search: query coordinator, highlighter, ranking
- preferences: persisted user preferences
"""
