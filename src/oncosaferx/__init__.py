"""OncoSafeRx: clinical oncology decision-support toolkit."""

__version__ = "0.1.0"
