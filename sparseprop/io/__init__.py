"""Network persistence adapters."""

from .xml import XmlNetworkLoader, XmlNetworkSaver

__all__ = ["XmlNetworkLoader", "XmlNetworkSaver"]
