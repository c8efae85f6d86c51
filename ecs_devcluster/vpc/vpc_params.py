# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Parameters related to the VPC settings. The cluster reuses the account default VPC.
"""

from ecs_devcluster.common.cfn_params import Parameter

VPC_TYPE = "AWS::EC2::VPC::Id"
SUBNETS_TYPE = "List<AWS::EC2::Subnet::Id>"

VPC_SETTINGS = "VPC Settings"

VPC_ID_T = "VpcId"
VPC_ID = Parameter(
    VPC_ID_T,
    group_label=VPC_SETTINGS,
    label="ID of the (default) VPC to deploy the cluster into",
    Type=VPC_TYPE,
)

APP_SUBNETS_T = "AppSubnets"
APP_SUBNETS = Parameter(
    APP_SUBNETS_T,
    group_label=VPC_SETTINGS,
    label="Subnets of the VPC the ECS hosts are placed into",
    Type=SUBNETS_TYPE,
)
