"""Core parsing, numbering and rewriting of Markdown citations."""
