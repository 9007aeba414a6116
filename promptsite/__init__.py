"""PromptSite: turn a text prompt into a single-page website, refine it, export it."""

__version__ = "0.1.0"
