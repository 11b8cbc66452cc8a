"""EcoPlate: surplus dining-hall meal drops, reservations and counter pickup."""

__version__ = "0.1.0"
