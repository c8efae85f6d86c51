#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
JSON schemas used to validate the ECS DevCluster configuration files.
"""
