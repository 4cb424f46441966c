"""
docsync - keeps an OpenAI vector store in sync with a GitHub repository.
"""

__version__ = "0.1.0"
