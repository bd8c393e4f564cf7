"""Prompt templates fed to the agent tools.

Built-in prompts are stored in ``templates.yaml`` (next to this module) and
loaded by :class:`PromptCatalog`; a template directory can override them.
"""

from ralph.prompts.catalog import PromptCatalog

__all__ = ["PromptCatalog"]
