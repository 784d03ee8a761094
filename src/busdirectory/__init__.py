"""Shared code for the bus directory Lambdas (deployed as a layer)."""
