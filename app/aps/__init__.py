"""aps - Agentic Prompt Sync.

Keeps rule files, skill folders and documentation fragments in a
repository synchronized with their declared git or filesystem sources.
"""

__version__ = "0.4.0"
