"""Provisioning and container deployment for the InstaRepay stack on EC2."""

__version__ = "0.3.0"
