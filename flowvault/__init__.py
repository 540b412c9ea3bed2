"""flowvault: scheduled fund-movement rules over a custodial vault."""

__version__ = "0.1.0"
