"""AWS-specific utility functions for bite."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any


def iter_instances(response: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield every instance in a describe_instances response.

    Parameters
    ----------
    response : dict[str, Any]
        Response (or paginator page) from boto3 describe_instances

    Yields
    ------
    dict[str, Any]
        Instance dictionaries in reservation order
    """
    for reservation in response.get("Reservations", []):
        yield from reservation.get("Instances", [])


def extract_instance_from_response(response: dict[str, Any]) -> dict[str, Any] | None:
    """Extract first instance from AWS describe_instances response.

    Parameters
    ----------
    response : dict[str, Any]
        Response from boto3 describe_instances call

    Returns
    -------
    dict[str, Any] | None
        The first instance dictionary, or None if the response holds none
    """
    return next(iter_instances(response), None)


def tags_to_dict(instance: dict[str, Any]) -> dict[str, str]:
    """Flatten an instance's Tags list into a key/value mapping."""
    return {tag["Key"]: tag["Value"] for tag in instance.get("Tags", [])}


def get_aws_credentials_error_message() -> str:
    """Get standard AWS credentials error message.

    Returns
    -------
    str
        Formatted AWS credentials error message
    """
    return (
        "Cloud credentials not found\n\n"
        "Configure your credentials:\n"
        "  aws configure\n\n"
        "Or set environment variables:\n"
        "  export AWS_ACCESS_KEY_ID=...\n"
        "  export AWS_SECRET_ACCESS_KEY=..."
    )
