"""AWS provider implementation."""

from bite.providers.aws.compute import EC2Manager

__all__ = ["EC2Manager"]
