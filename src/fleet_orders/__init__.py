"""Order timeline reconstruction and fleet delivery analytics."""

__version__ = "0.1.0"
