"""Prompt-ready descriptions of the research agent tools."""
