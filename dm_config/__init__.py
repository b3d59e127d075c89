"""Configuration console for Device Manager stations and their peripherals."""

__version__ = "0.1.0"
