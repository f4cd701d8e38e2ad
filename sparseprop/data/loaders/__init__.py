"""Built-in dataset loaders; importing registers them."""

from . import mnist, xor  # noqa: F401

__all__ = ["mnist", "xor"]
