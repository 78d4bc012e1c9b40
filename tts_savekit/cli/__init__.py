"""Command-line interface for tts-savekit."""
