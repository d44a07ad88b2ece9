"""NetBIOS responder, multi-port echo server, UPnP gateway client and helpers."""

__version__ = "0.1.0"

__all__ = ["__version__"]