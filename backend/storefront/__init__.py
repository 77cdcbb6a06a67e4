"""Backend for the online electronics storefront."""

__version__ = "1.0.0"
