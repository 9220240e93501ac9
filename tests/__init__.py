"""Test package for the arithmetic drill trainer.

Core modules are exercised directly with seeded generators and a fake clock.
UI tests run headlessly using pygame's dummy video driver so no real window
is opened. Run ``pytest`` from the project root.
"""
