#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import sys
from os import path

import pytest
import yaml

from ecs_devcluster import __version__
from ecs_devcluster.cli import main, main_parser


def test_parser_commands():
    parser = main_parser()
    args = parser.parse_args(
        [
            "up",
            "-n",
            "test",
            "--vpc-id",
            "vpc-0123abcd",
            "--subnet-id",
            "subnet-0123abcd",
            "--subnet-id",
            "subnet-4567efab",
        ]
    )
    assert args.command == "up"
    assert args.Name == "test"
    assert args.SubnetIds == ["subnet-0123abcd", "subnet-4567efab"]
    assert args.DisableRollback is False


def test_parser_requires_name():
    with pytest.raises(SystemExit):
        main_parser().parse_args(["render"])


def test_version(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["ecs-devcluster", "version"])
    assert main() == 0
    assert __version__ in capsys.readouterr().out


def test_config(monkeypatch, capsys, tmp_path):
    config_path = tmp_path / "devcluster.yaml"
    config_path.write_text(yaml.safe_dump({"Compute": {"InstanceType": "t3.small"}}))
    monkeypatch.setattr(
        sys, "argv", ["ecs-devcluster", "config", "-f", str(config_path)]
    )
    assert main() == 0
    output = yaml.safe_load(capsys.readouterr().out)
    assert output["Compute"]["InstanceType"] == "t3.small"
    assert output["Compute"]["MaxCapacity"] == 2


def test_render(monkeypatch, tmp_path):
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "ecs-devcluster",
            "render",
            "-n",
            "test",
            "-d",
            str(tmp_path),
            "--format",
            "yaml",
            "--cluster-name",
            "dev-cluster-abc123",
            "--vpc-id",
            "vpc-0123abcd",
            "--subnet-id",
            "subnet-0123abcd",
        ],
    )
    assert main() == 0
    assert path.exists(path.join(tmp_path, "test.yaml"))
    assert path.exists(path.join(tmp_path, "test.params.json"))


def test_no_arguments(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["ecs-devcluster"])
    with pytest.raises(SystemExit):
        main()
