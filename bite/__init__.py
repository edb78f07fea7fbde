"""bite - resolve a host alias to an EC2 instance, wake it up and connect."""

__version__ = "0.1.0"
