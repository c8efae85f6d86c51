#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Custom exceptions for ecs-devcluster
"""


class DevClusterException(Exception):
    """
    Top class for ECS DevCluster Exceptions
    """

    def __init__(self, msg, *args):
        super().__init__(msg, *args)


class InvalidSettings(DevClusterException):
    """
    Exception when the settings combination cannot produce a valid deployment,
    i.e. asking to deploy whilst not uploading the templates.
    """


class ImageBuildError(DevClusterException):
    """
    Exception raised when the docker engine fails to build or push the service image
    """
