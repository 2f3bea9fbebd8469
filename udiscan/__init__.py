"""
udiscan: scan medical device identifiers, resolve them and collect an exportable inventory.

Deutsch:
    Geräte-Identifikatoren scannen, auflösen und als exportierbares Inventar sammeln.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.3.0"
