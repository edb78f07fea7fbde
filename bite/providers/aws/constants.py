"""AWS-specific constants for EC2 operations."""

DEFAULT_REGION = "us-east-1"
"""Region used when neither settings nor the AWS environment name one."""

ACTIVE_INSTANCE_STATES = [
    "pending",
    "running",
    "stopping",
    "stopped",
]
"""EC2 instance states considered when searching by Name tag.

Terminated instances keep their tags for a while after termination and
would otherwise shadow a live instance with the same name.
"""

NOT_FOUND_ERROR_CODES = frozenset(
    (
        "InvalidInstanceID.NotFound",
        "InvalidInstanceID.Malformed",
    )
)
"""DescribeInstances error codes meaning the instance does not exist."""

NAME_TAG_KEY = "Name"
