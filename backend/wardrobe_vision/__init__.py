"""
Wardrobe Vision: garment detection, cutouts and color naming for wardrobe photos.
"""
__version__ = "0.1.0"
