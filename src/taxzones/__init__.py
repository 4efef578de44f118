"""taxzones — zone matching for tax and shipping jurisdictions."""

__version__ = "0.1.0"
