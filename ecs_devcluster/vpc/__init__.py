# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Network selection. The cluster does not create a VPC, it reuses the default one of the account,
unless a VPC and subnets are given in the settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_devcluster.common.settings import DevClusterSettings

from ecs_devcluster.common.logging import LOG
from ecs_devcluster.vpc.vpc_aws import lookup_default_vpc, lookup_vpc_subnets
from ecs_devcluster.vpc.vpc_params import APP_SUBNETS_T, VPC_ID_T


def define_network_settings(settings: DevClusterSettings) -> dict:
    """
    Sets the VPC ID and subnets on the settings, looking up the default VPC when not set.

    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :return: the stack parameters values for the network
    :rtype: dict
    """
    if settings.vpc_id and settings.subnet_ids:
        LOG.info(f"Using VPC {settings.vpc_id} and subnets {settings.subnet_ids}")
    elif settings.vpc_id:
        settings.subnet_ids = lookup_vpc_subnets(
            settings.vpc_id, settings.session, default_only=False
        )
    elif settings.subnet_ids:
        raise ValueError("When setting subnets you must also set the VPC ID")
    else:
        settings.vpc_id, settings.subnet_ids = lookup_default_vpc(settings.session)
    return {VPC_ID_T: settings.vpc_id, APP_SUBNETS_T: settings.subnet_ids}
