"""HTTP exposition of the exporter's registry."""
