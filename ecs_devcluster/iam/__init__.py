# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

from troposphere import Sub

ROLE_ARN_ARG = "RoleArn"


def service_role_trust_policy(service_name: str) -> dict:
    """
    Simple function to format the trust relationship for a Role and an AWS Service

    :param str service_name: name of the AWS service, i.e. ec2
    :return: policy document
    :rtype: dict
    """
    statement = {
        "Effect": "Allow",
        "Principal": {"Service": [Sub(f"{service_name}.${{AWS::URLSuffix}}")]},
        "Action": ["sts:AssumeRole"],
    }
    return {"Version": "2012-10-17", "Statement": [statement]}


def aws_managed_policy(policy_path: str) -> Sub:
    """
    Returns the partition-aware ARN of an AWS managed policy

    :param str policy_path: path and name of the policy, i.e. service-role/AmazonEC2ContainerServiceforEC2Role
    :rtype: troposphere.Sub
    """
    return Sub(f"arn:${{AWS::Partition}}:iam::aws:policy/{policy_path}")
