"""EC2 instance queries and start requests for bite."""

import logging
from typing import Any

import boto3

from bite.constants import AddressType
from bite.core.interfaces import InstanceDescriptor, PowerState
from bite.providers.aws.constants import (
    ACTIVE_INSTANCE_STATES,
    NAME_TAG_KEY,
    NOT_FOUND_ERROR_CODES,
)
from bite.providers.aws.errors import handle_aws_errors
from bite.providers.aws.utils import (
    extract_instance_from_response,
    iter_instances,
    tags_to_dict,
)
from bite.providers.exceptions import ProviderAPIError

logger = logging.getLogger(__name__)


class EC2Manager:
    """Describe and start EC2 instances.

    Every call goes straight to the EC2 API; nothing is cached, so each
    returned descriptor reflects the instance state at the time of the call.

    Parameters
    ----------
    region : str
        AWS region for EC2 operations
    address_type : AddressType | str
        Which address to report as the assigned address: "private"
        (default) or "public"
    boto3_client_factory : Callable[..., Any] | None
        Optional factory for creating boto3 clients. If None, uses boto3.client
    """

    def __init__(
        self,
        region: str,
        address_type: AddressType | str = AddressType.PRIVATE,
        boto3_client_factory: Any | None = None,
    ) -> None:
        self.region = region
        self.address_type = AddressType(address_type)
        self.boto3_client_factory = boto3_client_factory or boto3.client
        self.ec2_client = self.boto3_client_factory("ec2", region_name=region)

    def describe_instance(self, instance_id: str) -> InstanceDescriptor | None:
        """Fetch the current state of a single instance.

        Parameters
        ----------
        instance_id : str
            EC2 instance ID

        Returns
        -------
        InstanceDescriptor | None
            Fresh descriptor, or None if EC2 does not know the instance

        Raises
        ------
        ProviderAPIError
            If EC2 returns any error other than "instance not found"
        ProviderCredentialsError
            If AWS credentials are not configured
        """
        try:
            with handle_aws_errors():
                response = self.ec2_client.describe_instances(
                    InstanceIds=[instance_id]
                )
        except ProviderAPIError as e:
            if e.error_code in NOT_FOUND_ERROR_CODES:
                logger.debug("Instance %s not found: %s", instance_id, e)
                return None
            raise

        instance = extract_instance_from_response(response)
        if instance is None:
            return None

        return self._to_descriptor(instance)

    def describe_instances_by_tag(self, name: str) -> list[InstanceDescriptor]:
        """Find non-terminated instances whose Name tag equals name.

        Parameters
        ----------
        name : str
            Exact Name tag value

        Returns
        -------
        list[InstanceDescriptor]
            Matching instances in the order EC2 returned them
        """
        descriptors = []

        with handle_aws_errors():
            paginator = self.ec2_client.get_paginator("describe_instances")
            page_iterator = paginator.paginate(
                Filters=[
                    {"Name": f"tag:{NAME_TAG_KEY}", "Values": [name]},
                    {"Name": "instance-state-name", "Values": ACTIVE_INSTANCE_STATES},
                ]
            )

            for page in page_iterator:
                for instance in iter_instances(page):
                    descriptors.append(self._to_descriptor(instance))

        logger.debug("Name tag %r matched %d instances", name, len(descriptors))
        return descriptors

    def start_instance(self, instance_id: str) -> None:
        """Request an instance start and return without waiting.

        Parameters
        ----------
        instance_id : str
            Instance ID to start
        """
        logger.info("Starting instance %s...", instance_id)

        with handle_aws_errors():
            self.ec2_client.start_instances(InstanceIds=[instance_id])

    def _to_descriptor(self, instance: dict[str, Any]) -> InstanceDescriptor:
        if self.address_type is AddressType.PUBLIC:
            address = instance.get("PublicIpAddress")
        else:
            address = instance.get("PrivateIpAddress")

        return InstanceDescriptor(
            instance_id=instance["InstanceId"],
            power_state=PowerState.from_provider(
                instance.get("State", {}).get("Name")
            ),
            assigned_address=address or None,
            name=tags_to_dict(instance).get(NAME_TAG_KEY),
            region=self.region,
        )
