"""Core building blocks: value models, exceptions and logging setup."""
