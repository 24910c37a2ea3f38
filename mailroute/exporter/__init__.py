"""Routing-address exporter: directory query to versioned CSV tables."""
