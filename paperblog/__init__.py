"""
paperblog — turn academic papers into stylized Markdown blog posts.

A host CLI extracts PDF text and arXiv metadata, a relay service forwards the
prompt to the LLM provider selected by the caller's API key (Claude, OpenAI,
Perplexity, or a local OpenAI-compatible server), and an MCP server exposes
paper search and blog generation to AI assistants.
"""

__version__ = "1.0.0"
