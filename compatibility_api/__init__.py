"""eBay vehicle compatibility lookups rendered as embeddable HTML tables."""

__version__ = "1.0.0"
