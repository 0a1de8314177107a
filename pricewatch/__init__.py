"""pricewatch - price-drop monitoring for tracked product pages"""

__version__ = "0.1.0"
