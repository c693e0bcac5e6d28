"""Tokenizer, parser, execution tree and executor for a small command shell."""

__version__ = "0.1.0"