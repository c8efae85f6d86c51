# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module for the DevClusterSettings class
"""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime as dt
from datetime import timezone
from json import loads

import boto3
import jsonschema
import yaml
from botocore.exceptions import ClientError
from compose_x_common.aws import get_account_id, validate_iam_role_arn
from compose_x_common.compose_x_common import keyisset, set_else_none
from importlib_resources import files as pkg_files

from ecs_devcluster.common.aws import get_cross_role_session
from ecs_devcluster.common.logging import LOG
from ecs_devcluster.ecs_cluster.ecs_cluster_params import DEFAULT_CLUSTER_BASE_NAME
from ecs_devcluster.iam import ROLE_ARN_ARG

DEFAULT_CONFIG = {
    "ClusterBaseName": DEFAULT_CLUSTER_BASE_NAME,
    "Network": {},
    "Compute": {
        "InstanceType": "t2.micro",
        "MinCapacity": 1,
        "MaxCapacity": 2,
        "DesiredCapacity": 1,
        "MemoryReservationTarget": 80,
        "EcsReservedMemory": 256,
    },
    "Service": {
        "Name": "nginx",
        "ContainerName": "nginx",
        "DesiredCount": 1,
        "Memory": 256,
        "MemoryReservation": 256,
        "MinimumHealthyPercent": 0,
        "MaximumPercent": 100,
        "HealthCheck": {
            "Command": "curl --fail http://localhost",
            "Interval": "30s",
            "Timeout": "5s",
            "Retries": 3,
            "StartPeriod": "5s",
        },
    },
    "Image": {
        "Repository": "ecs-devcluster/nginx",
        "BuildContext": ".",
        "Dockerfile": "Dockerfile",
        "Tag": "latest",
    },
}


def merge_config(base: dict, override: dict) -> dict:
    """
    Deep merges override into a copy of base. Dicts are merged, any other value is replaced.

    :param dict base:
    :param dict override:
    :return: the merged configuration
    :rtype: dict
    """
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def validate_config(content: dict) -> None:
    """
    Validates the configuration against the JSON schema shipped with the package

    :param dict content:
    :raises jsonschema.ValidationError:
    """
    source = pkg_files("ecs_devcluster").joinpath("specs/devcluster.spec.json")
    LOG.debug(f"Validating configuration against input schema {source}")
    jsonschema.validate(content, loads(source.read_text()))


def load_config_file(file_path: str) -> dict:
    """
    Loads the YAML configuration file

    :param str file_path:
    :return: the file content
    :rtype: dict
    """
    with open(file_path) as config_fd:
        content = yaml.safe_load(config_fd.read())
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise TypeError(
            f"{file_path} - The configuration must be a mapping. Got", type(content)
        )
    return content


class DevClusterSettings:
    """
    Class to handle the settings to use for ECS DevCluster.

    :ivar dict config: The effective configuration, defaults merged with file content
    :ivar str cluster_name: The ECS cluster identifier, once resolved
    :ivar str vpc_id:
    :ivar list[str] subnet_ids:
    :ivar str image_uri: The URI of the image the service runs
    :ivar ecs_devcluster.common.stacks.DevClusterStack root_stack:
    """

    name_arg = "Name"
    cluster_name_arg = "ClusterName"
    vpc_id_arg = "VpcId"
    subnets_arg = "SubnetIds"
    image_arg = "ImageUri"

    region_arg = "RegionName"
    arn_arg = ROLE_ARN_ARG

    deploy_arg = "up"
    render_arg = "render"
    create_arg = "create"
    plan_arg = "plan"
    destroy_arg = "down"
    build_arg = "build"
    config_render_arg = "config"
    command_arg = "command"

    bucket_arg = "BucketName"
    input_file_arg = "ConfigFile"
    output_dir_arg = "OutputDirectory"
    format_arg = "TemplateFormat"
    default_format = "json"
    allowed_formats = ["json", "yaml"]

    default_output_dir = f"/tmp/{int(dt.now(timezone.utc).timestamp())}"

    active_commands = [
        {
            "name": deploy_arg,
            "help": "Builds the image, generates & validates the CFN template, Creates/Updates stack in CFN",
        },
        {
            "name": render_arg,
            "help": "Generates the CFN template locally. No upload to S3",
        },
        {
            "name": create_arg,
            "help": "Generates & Validates the CFN template locally. Uploads files to S3",
        },
        {
            "name": plan_arg,
            "help": "Creates a change-set to show the diff prior to a create/update",
        },
    ]
    stack_commands = [
        {"name": destroy_arg, "help": "Deletes the CFN stack"},
        {"name": build_arg, "help": "Builds and pushes the service image to ECR"},
    ]
    validation_commands = [
        {
            "name": config_render_arg,
            "help": "Merges the defaults with the configuration file and prints the result",
        }
    ]
    neutral_commands = [
        {
            "name": "init",
            "help": "Initializes your AWS Account with the S3 bucket to store templates",
        },
        {"name": "version", "help": "ECS DevCluster Version"},
    ]
    all_commands = (
        active_commands + stack_commands + validation_commands + neutral_commands
    )
    lookup_commands = [create_arg, deploy_arg, plan_arg, destroy_arg]

    def __init__(
        self,
        content=None,
        profile_name=None,
        session=None,
        **kwargs,
    ):
        """
        Class to init the configuration

        :param dict content: Configuration content to use instead of, or on top of, the config file
        :param str profile_name: AWS profile to use for the session
        :param boto3.session.Session session: Override session
        """
        self.__args = deepcopy(kwargs)
        self.session = boto3.session.Session()
        self.override_session(session, profile_name, kwargs)
        self.aws_region = (
            kwargs[self.region_arg]
            if keyisset(self.region_arg, kwargs)
            else self.session.region_name
        )
        self.bucket_name = set_else_none(self.bucket_arg, kwargs)
        self.account_id = None
        self.output_dir = self.default_output_dir
        self.format = self.default_format

        self.command = set_else_none(self.command_arg, kwargs)
        self.deploy = False
        self.plan = False
        self.destroy = False
        self.build = False
        self.no_upload = True
        self.upload = False

        self.input_file = set_else_none(self.input_file_arg, kwargs)
        self.config = {}
        self.set_content(kwargs, content)
        self.set_output_settings(kwargs)
        self.name = kwargs[self.name_arg]
        self.cluster_name = set_else_none(
            self.cluster_name_arg,
            kwargs,
            alt_value=set_else_none(self.cluster_name_arg, self.config),
        )
        self.vpc_id = set_else_none(
            self.vpc_id_arg,
            kwargs,
            alt_value=set_else_none("VpcId", self.config["Network"]),
        )
        self.subnet_ids = set_else_none(
            self.subnets_arg,
            kwargs,
            alt_value=set_else_none("SubnetIds", self.config["Network"], alt_value=[]),
        )
        self.image_uri = set_else_none(
            self.image_arg,
            kwargs,
            alt_value=set_else_none("Uri", self.config["Image"]),
        )
        self.root_stack = None
        self.parse_command()

    def __repr__(self):
        return f"DevClusterSettings({self.name}, command={self.command}, region={self.aws_region})"

    @property
    def disable_rollback(self) -> bool:
        return bool(set_else_none("DisableRollback", self.__args, alt_value=False))

    @property
    def cluster_base_name(self) -> str:
        return self.config["ClusterBaseName"]

    @property
    def compute(self) -> dict:
        return self.config["Compute"]

    @property
    def service(self) -> dict:
        return self.config["Service"]

    @property
    def image(self) -> dict:
        return self.config["Image"]

    @property
    def requires_stack_lookup(self) -> bool:
        """
        Whether the command works against an existing CFN stack, in which case its settings are reused.
        """
        return self.command in self.lookup_commands

    def set_content(self, kwargs, content=None):
        """
        Method to initialize the configuration from defaults, the config file and content

        :param dict kwargs:
        :param dict content:
        """
        user_config = {}
        if keyisset(self.input_file_arg, kwargs):
            LOG.debug(f"Input file: {kwargs[self.input_file_arg]}")
            user_config = load_config_file(kwargs[self.input_file_arg])
        if content:
            user_config = merge_config(user_config, content)
        validate_config(user_config)
        self.config = merge_config(DEFAULT_CONFIG, user_config)

    def render_config(self) -> str:
        """
        Returns the effective configuration as YAML
        """
        return yaml.safe_dump(self.config, default_flow_style=False)

    def parse_command(self):
        """
        Method to analyze the command and set execution settings accordingly.
        up only builds the image when no image URI is set, from the CLI or the configuration.
        """
        command = self.command
        command_names = [cmd["name"] for cmd in self.all_commands]
        if command is not None and command not in command_names:
            raise ValueError(
                f"Command {command} is not valid. Must be one of", command_names
            )
        if command == self.deploy_arg:
            self.deploy = True
            self.build = not self.image_uri
            self.upload = True
        elif command == self.plan_arg:
            self.plan = True
            self.upload = True
        elif command == self.create_arg:
            self.upload = True
        elif command == self.destroy_arg:
            self.destroy = True
        elif command == self.build_arg:
            self.build = True
        self.no_upload = not self.upload

    def override_session(self, session, profile_name, kwargs):
        """
        Method to set the session based on input params

        :param boto3.session.Session session: The session to override the API calls with
        :param str profile_name: Name of a profile configured in .aws/config
        :param dict kwargs: CLI kwargs
        """
        if profile_name and not session:
            self.session = boto3.session.Session(profile_name=profile_name)
        elif keyisset(self.region_arg, kwargs) and not session:
            self.session = boto3.session.Session(region_name=kwargs[self.region_arg])
        elif session:
            self.session = session
        if keyisset(self.arn_arg, kwargs):
            validate_iam_role_arn(arn=kwargs[self.arn_arg])
            self.session = get_cross_role_session(
                self.session,
                kwargs[self.arn_arg],
                region_name=set_else_none(self.region_arg, kwargs),
                session_name=f"DevClusterSettings@{set_else_none(self.command_arg, kwargs)}",
            )

    def set_output_settings(self, kwargs):
        """
        Method to set the output settings based on kwargs
        """
        self.format = self.default_format
        if (
            keyisset(self.format_arg, kwargs)
            and kwargs[self.format_arg] in self.allowed_formats
        ):
            self.format = kwargs[self.format_arg]

        self.output_dir = (
            kwargs[self.output_dir_arg]
            if keyisset(self.output_dir_arg, kwargs)
            else self.default_output_dir
        )

    def set_bucket_name_from_account_id(self):
        """
        Defines the default bucket name to use from the AWS Account ID
        """
        if self.bucket_name and isinstance(self.bucket_name, str):
            return
        if self.account_id is None:
            try:
                self.account_id = get_account_id(session=self.session)
                self.bucket_name = (
                    f"ecs-devcluster-{self.account_id}-{self.session.region_name}"
                )
            except ClientError as error:
                code = error.response["Error"]["Code"]
                message = error.response["Error"]["Message"]
                if code == "ExpiredToken":
                    LOG.error(message)
                    LOG.warning(
                        "Due to credentials error, we won't attempt to upload to S3."
                    )
                else:
                    LOG.error(error)
                self.bucket_name = None
                self.upload = False
                self.no_upload = True
