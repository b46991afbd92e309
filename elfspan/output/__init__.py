"""Console and JSON presentation of decode results."""
