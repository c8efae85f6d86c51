# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Console script for ecs_devcluster.
"""

import argparse
import sys

from cfn_flip.yaml_dumper import LongCleanDumper
from yaml import dump

from ecs_devcluster import __version__
from ecs_devcluster.common.aws import deploy, destroy, plan
from ecs_devcluster.common.logging import LOG, set_log_level
from ecs_devcluster.common.settings import DevClusterSettings
from ecs_devcluster.devcluster import generate_full_template
from ecs_devcluster.ecs.ecs_image import build_and_push_image
from ecs_devcluster.utils.init_s3 import create_bucket


class ArgparseHelper(argparse._HelpAction):
    """
    Used to help print top level '--help' arguments from argparse
    when used with subparsers
    """

    def __call__(self, parser, namespace, values, option_string=None):
        parser.print_help()
        print()
        subparsers_actions = [
            action
            for action in parser._actions
            if isinstance(action, argparse._SubParsersAction)
        ]
        for subparsers_action in subparsers_actions:
            for choice, subparser in list(subparsers_action.choices.items()):
                if choice in [
                    cmd["name"]
                    for cmd in DevClusterSettings.active_commands
                    + DevClusterSettings.stack_commands
                ]:
                    print(f"Command '{choice}'")
                    print(subparser.format_usage())


def main_parser():
    """
    Console script for ecs_devcluster.
    """
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "-h",
        "--help",
        action=ArgparseHelper,
        help="show this help message and exit",
    )

    cmd_parsers = parser.add_subparsers(
        dest=DevClusterSettings.command_arg, help="Command to execute."
    )
    base_command_parser = argparse.ArgumentParser(add_help=False)
    files_parser = argparse.ArgumentParser(add_help=False)
    cluster_parser = argparse.ArgumentParser(add_help=False)
    files_parser.add_argument(
        "-f",
        "--config-file",
        dest=DevClusterSettings.input_file_arg,
        required=False,
        help="Path to the YAML configuration file",
    )
    files_parser.add_argument(
        "-d",
        "--output-dir",
        required=False,
        help="Output directory to write all the templates to.",
        type=str,
        dest=DevClusterSettings.output_dir_arg,
        default=DevClusterSettings.default_output_dir,
    )
    base_command_parser.add_argument(
        "-n",
        "--name",
        help="Name of your stack",
        required=True,
        type=str,
        dest=DevClusterSettings.name_arg,
    )
    base_command_parser.add_argument(
        "--format",
        help="Defines the format you want to use.",
        type=str,
        dest=DevClusterSettings.format_arg,
        choices=DevClusterSettings.allowed_formats,
        default=DevClusterSettings.default_format,
    )
    base_command_parser.add_argument(
        "--region",
        required=False,
        dest=DevClusterSettings.region_arg,
        help="Specify the region you want to build for"
        "default use default region from config or environment vars",
    )
    base_command_parser.add_argument(
        "-b",
        "--bucket-name",
        type=str,
        required=False,
        help="Bucket name to upload the templates to",
        dest=DevClusterSettings.bucket_arg,
    )
    base_command_parser.add_argument(
        "--role-arn",
        dest=DevClusterSettings.arn_arg,
        help="Allow you to run API calls using a specific IAM role, within same or for cross-account",
        required=False,
    )
    base_command_parser.add_argument(
        "--disable-rollback",
        dest="DisableRollback",
        help="On create/plan, disable stack automatic rollback.",
        required=False,
        action="store_true",
    )
    base_command_parser.add_argument(
        "--loglevel", type=str, help="Log level. Defaults to INFO", required=False
    )
    cluster_parser.add_argument(
        "--cluster-name",
        dest=DevClusterSettings.cluster_name_arg,
        required=False,
        help="Cluster name to use instead of generating one. i.e. dev-cluster-a1b2c3",
    )
    cluster_parser.add_argument(
        "--vpc-id",
        dest=DevClusterSettings.vpc_id_arg,
        required=False,
        help="VPC to deploy to. Defaults to the account default VPC",
    )
    cluster_parser.add_argument(
        "--subnet-id",
        dest=DevClusterSettings.subnets_arg,
        action="append",
        required=False,
        help="Subnet of the VPC to place the hosts into. Repeat for multiple subnets",
    )
    cluster_parser.add_argument(
        "--image",
        dest=DevClusterSettings.image_arg,
        required=False,
        help="Image URI to use for the service, instead of building it from the Dockerfile",
    )
    for command in DevClusterSettings.active_commands:
        cmd_parsers.add_parser(
            name=command["name"],
            help=command["help"],
            parents=[base_command_parser, files_parser, cluster_parser],
        )
    for command in DevClusterSettings.stack_commands:
        cmd_parsers.add_parser(
            name=command["name"],
            help=command["help"],
            parents=[base_command_parser, files_parser],
        )
    for command in DevClusterSettings.validation_commands:
        cmd_parsers.add_parser(
            name=command["name"], help=command["help"], parents=[files_parser]
        )
    init_parser = cmd_parsers.add_parser(
        name="init", help=DevClusterSettings.neutral_commands[0]["help"]
    )
    init_parser.add_argument(
        "-b",
        "--bucket-name",
        type=str,
        required=False,
        help="Bucket name to create. Defaults to ecs-devcluster-<account>-<region>",
        dest=DevClusterSettings.bucket_arg,
    )
    init_parser.add_argument(
        "--region", required=False, dest=DevClusterSettings.region_arg
    )
    cmd_parsers.add_parser(
        name="version", help=DevClusterSettings.neutral_commands[1]["help"]
    )
    return parser


def render_config(args: dict) -> int:
    settings = DevClusterSettings(Name="config", **args)
    print(dump(settings.config, Dumper=LongCleanDumper, default_flow_style=False))
    return 0


def init_account(args: dict) -> int:
    """
    Creates the S3 bucket the templates are uploaded to
    """
    settings = DevClusterSettings(Name="init", **args)
    settings.set_bucket_name_from_account_id()
    if not settings.bucket_name:
        LOG.error("Unable to define the bucket name to create")
        return 1
    create_bucket(settings.bucket_name, settings.session)
    return 0


def main():
    """
    Main entry point for CLI
    :return: status code
    """
    parser = main_parser()
    if len(sys.argv) == 1:
        parser.print_help()
        sys.exit()
    args = parser.parse_args()
    if getattr(args, "loglevel", None):
        set_log_level(args.loglevel)
    LOG.debug(args)
    kwargs = vars(args)
    kwargs.pop("loglevel", None)
    command = kwargs[DevClusterSettings.command_arg]
    if command == "version":
        print(__version__)
        return 0
    elif command == DevClusterSettings.config_render_arg:
        return render_config(kwargs)
    elif command == "init":
        return init_account(kwargs)

    settings = DevClusterSettings(**kwargs)
    LOG.debug(settings)
    if settings.destroy:
        destroy(settings)
        return 0
    if settings.build and not settings.deploy:
        build_and_push_image(settings)
        return 0

    if settings.upload:
        settings.set_bucket_name_from_account_id()
    if settings.deploy and not settings.upload:
        LOG.warning(
            "You must upload the templates in order to deploy. We won't be deploying."
        )
        settings.deploy = False
    root_stack = generate_full_template(settings)
    root_stack.render(settings)

    if settings.deploy:
        deploy(settings, root_stack)
    elif settings.plan:
        plan(settings, root_stack)
    return 0


if __name__ == "__main__":
    sys.exit(main())  # pragma: no cover
