"""Shared type aliases for the mbmdr package."""

# A selected feature, either by column index or by column name.
FeatureKey = int | str
