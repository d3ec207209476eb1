"""Encoders for metric batches."""
