"""Core — models, persistence, engine and use cases."""
