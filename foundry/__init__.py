"""Genie Foundry -- prompt-to-scaffold generator for internal tools.

Plans a problem statement with a language model, then writes a workspace
containing a manifest, an expanded app spec, a static scaffold, a themed
Next.js template app and, optionally, a model-generated full app.
"""

__version__ = "0.1.0"
