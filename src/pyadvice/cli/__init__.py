"""pyadvice command-line interface."""
