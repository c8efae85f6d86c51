# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to handle the root stack of ECS DevCluster. Allows to treat everything in memory before uploading
files into S3 and on disk.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_devcluster.common.settings import DevClusterSettings

from troposphere import Template
from troposphere.cloudformation import Stack

from ecs_devcluster.common import NONALPHANUM
from ecs_devcluster.common.files import FileArtifact
from ecs_devcluster.common.logging import LOG


def render_codepipeline_config_file(parameters):
    """
    Method to write all the parameters in the AWS CFN Config format for Codepipeline

    :param list parameters:
    :rtype: dict
    """
    if not parameters:
        return None
    config = {"Parameters": {}, "Tags": {}}

    for param in parameters:
        config["Parameters"].update({param["ParameterKey"]: param["ParameterValue"]})
    return config


class DevClusterStack(Stack):
    """
    Class to define a CFN Stack as a composition of its template object and parameters.
    """

    def __init__(self, name, stack_template, stack_parameters=None, file_name=None):
        """
        Class to keep track of the template object along with the stack object it represents.

        :param str name: name of the stack
        :param troposphere.Template stack_template: the template object to keep track of
        :param dict stack_parameters: Stack parameters to set
        :param str file_name: override of the base name of the files
        """
        self.name = name
        title = NONALPHANUM.sub("", self.name)
        self.file_name = file_name if file_name else name
        if not isinstance(stack_template, Template):
            raise TypeError(
                "stack_template is", type(stack_template), "expected", Template
            )
        self.stack_template = stack_template
        if stack_parameters is None:
            stack_parameters = {}
        elif not isinstance(stack_parameters, dict):
            raise TypeError("parameters is", type(stack_parameters), "expected", dict)
        super().__init__(title, Parameters=stack_parameters)

    def add_parameter(self, parameter):
        """
        Function to add a parameter or set of parameters to the stack

        :param dict parameter:
        """
        if not isinstance(parameter, dict):
            raise TypeError("parameter must be of type", dict, "got", type(parameter))
        self.Parameters.update(parameter)

    def write_config_file(self, settings: DevClusterSettings):
        """
        Method to write the parameters files for the stack, in CFN and CodePipeline formats.
        """
        params = self.render_parameters_list_cfn()
        if not params:
            return
        LOG.debug(f"Rendering {self.file_name}.params.json")
        files = [
            FileArtifact(
                file_name=f"{self.file_name}.params",
                content=params,
                settings=settings,
                file_format="json",
            ),
            FileArtifact(
                file_name=f"{self.file_name}.config",
                content=render_codepipeline_config_file(params),
                settings=settings,
                file_format="json",
            ),
        ]
        for file in files:
            file.write(settings)
            if settings.upload:
                file.upload(settings)
                LOG.debug(f"Rendered URL = {file.url}")

    def render_parameters_list_cfn(self):
        """
        Renders parameters in a CFN parameters config file format

        :return: params
        :rtype: list
        """
        params = []
        for param_name, value in self.Parameters.items():
            LOG.debug(f"{param_name} - {value}")
            if isinstance(value, bool):
                value = str(value).lower()
            if isinstance(value, (int, str)):
                params.append({"ParameterKey": param_name, "ParameterValue": str(value)})
            elif isinstance(value, list):
                params.append(
                    {"ParameterKey": param_name, "ParameterValue": ",".join(value)}
                )
        return params

    def render(self, settings: DevClusterSettings):
        """
        Function to use when the template is finalized and can be written, and uploaded to S3.
        The template is validated by CFN only when uploaded.
        """
        LOG.debug(f"Rendering {self.title}")
        template_file = FileArtifact(
            file_name=self.file_name,
            template=self.stack_template,
            settings=settings,
            file_format=settings.format,
        )
        template_file.write(settings)
        setattr(self, "TemplateURL", template_file.file_path)
        if settings.upload:
            template_file.upload(settings)
            setattr(self, "TemplateURL", template_file.url)
            LOG.debug(f"Rendered URL = {template_file.url}")
            template_file.validate(settings)
        self.write_config_file(settings)
        return template_file
