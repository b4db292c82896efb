"""Skit Engine — turns LLM completions into playable visual-novel skits."""
