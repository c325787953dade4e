"""Acne analysis backend: multi-source prediction aggregation and treatment plans."""
