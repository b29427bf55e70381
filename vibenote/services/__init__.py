"""
Services module for VibeNote.
"""
