"""
treecat - concatenate a file tree into a single text payload.

This package walks files and directories, filters them with extension,
glob, hidden-file and ``.gitignore`` rules, and writes every surviving
file's path and contents to one stream, either as plain sections or as
an XML-like ``<documents>`` bundle for LLM prompts.
"""

__version__ = "0.1.0"
