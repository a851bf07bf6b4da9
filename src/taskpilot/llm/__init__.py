"""LLM clients used for subtask expansion."""
