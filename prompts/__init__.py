"""
Prompt templates for the AI translation backend.
"""
