"""Autonomous browser agent: control loop, recovery and tiered memory."""

__version__ = "0.1.0"
