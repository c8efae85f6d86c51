# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Functions to find the default VPC and its subnets with the EC2 API.
"""

from boto3.session import Session
from compose_x_common.compose_x_common import keyisset

from ecs_devcluster.common.logging import LOG


def lookup_default_vpc_id(session: Session) -> str:
    """
    Finds the default VPC of the session region.

    :param boto3.session.Session session:
    :raises LookupError: when the account/region has no default VPC
    :return: the VPC ID
    """
    client = session.client("ec2")
    vpcs_r = client.describe_vpcs(Filters=[{"Name": "is-default", "Values": ["true"]}])
    if not keyisset("Vpcs", vpcs_r):
        raise LookupError(
            "No default VPC found in region",
            client.meta.region_name,
            "Use --vpc-id and --subnet-id to select one",
        )
    vpc_id = vpcs_r["Vpcs"][0]["VpcId"]
    LOG.info(f"Default VPC found in {client.meta.region_name}: {vpc_id}")
    return vpc_id


def lookup_vpc_subnets(vpc_id: str, session: Session, default_only: bool = True) -> list:
    """
    Lists the subnets of a VPC. For the default VPC, only the default-for-az subnets are kept.

    :param str vpc_id:
    :param boto3.session.Session session:
    :param bool default_only: Only keep the subnets flagged as default for their AZ
    :raises LookupError: when no subnet is found
    :return: the list of subnets IDs
    :rtype: list[str]
    """
    client = session.client("ec2")
    filters = [{"Name": "vpc-id", "Values": [vpc_id]}]
    if default_only:
        filters.append({"Name": "default-for-az", "Values": ["true"]})
    subnets_r = client.describe_subnets(Filters=filters)
    if not keyisset("Subnets", subnets_r):
        raise LookupError("No subnets found for VPC", vpc_id, "Filters", filters)
    subnets = sorted(
        subnets_r["Subnets"], key=lambda subnet: subnet["AvailabilityZone"]
    )
    return [subnet["SubnetId"] for subnet in subnets]


def lookup_default_vpc(session: Session) -> tuple:
    """
    Returns the default VPC ID and its default subnets

    :param boto3.session.Session session:
    :return: VPC ID, subnets IDs
    :rtype: tuple[str, list[str]]
    """
    vpc_id = lookup_default_vpc_id(session)
    return vpc_id, lookup_vpc_subnets(vpc_id, session)
