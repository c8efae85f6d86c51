#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import json

import pytest
import yaml
from troposphere import Template

from ecs_devcluster.common.files import JSON_MIME, YAML_MIME, FileArtifact
from ecs_devcluster.common.settings import DevClusterSettings


@pytest.fixture
def settings(tmp_path):
    return DevClusterSettings(
        **{
            DevClusterSettings.name_arg: "test",
            DevClusterSettings.command_arg: DevClusterSettings.render_arg,
            DevClusterSettings.output_dir_arg: str(tmp_path),
        }
    )


def test_template_file(settings):
    template = Template(Description="test")
    json_file = FileArtifact("test", settings, template=template)
    assert json_file.file_name == "test.json"
    assert json_file.mime == JSON_MIME
    assert json.loads(json_file.body)["Description"] == "test"
    yaml_file = FileArtifact("test", settings, file_format="yaml", template=template)
    assert yaml_file.file_name == "test.yaml"
    assert yaml_file.mime == YAML_MIME


def test_content_file(settings, tmp_path):
    params = [{"ParameterKey": "VpcId", "ParameterValue": "vpc-0123abcd"}]
    params_file = FileArtifact("test.params", settings, file_format="json", content=params)
    params_file.write(settings)
    with open(tmp_path / "test.params.json") as params_fd:
        assert json.loads(params_fd.read()) == params
    yaml_file = FileArtifact("test.params", settings, file_format="yaml", content=params)
    assert yaml.safe_load(yaml_file.body) == params


def test_invalid_artifacts(settings):
    with pytest.raises(ValueError):
        FileArtifact("test", settings, file_format="text", content={})
    with pytest.raises(TypeError):
        FileArtifact("test", settings, template={"Resources": {}})
    with pytest.raises(TypeError):
        FileArtifact("test", settings, content=42)


def test_validate_requires_upload(settings):
    template_file = FileArtifact("test", settings, template=Template())
    with pytest.raises(ValueError):
        template_file.validate(settings)
