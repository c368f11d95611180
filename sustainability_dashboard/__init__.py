"""CI + GenAI sustainable innovation dashboard: CSV aggregation engine and Shiny app."""

__version__ = "0.1.0"
