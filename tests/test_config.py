"""Tests for loading configuration mappings and stack files"""
import pytest
from pydantic import ValidationError

from tests.helpers import write_stack_file
from topology.config import load_environment_config, load_stack_file
from topology.errors import ConfigError
from topology.models import SubnetKind


class TestLoadEnvironmentConfig:
    """Test raw mapping validation"""

    def test_camel_case_keys(self, raw_config, node_group):
        """Test that camelCase keys populate the model"""
        raw_config["eks"]["nodeGroups"] = [node_group]
        config = load_environment_config(raw_config)
        assert config.eks.name_prefix == "demo"
        assert config.eks.node_group_role_prefix == "demo-node-group-role"
        assert config.eks.node_groups[0].instance_types == ["t3.medium", "t3.large"]

    def test_snake_case_keys(self, raw_config):
        """Test that field names are accepted as well as aliases"""
        eks = raw_config["eks"]
        raw_config["eks"] = {
            "count": eks["count"],
            "name_prefix": eks["namePrefix"],
            "role_prefix": eks["rolePrefix"],
            "node_group_role_prefix": eks["nodeGroupRolePrefix"],
        }
        assert load_environment_config(raw_config).eks.role_prefix == "demo-eks-role"

    def test_subnet_kinds(self, raw_config):
        """Test that subnets are tagged with the list they came from"""
        config = load_environment_config(raw_config)
        assert {s.kind for s in config.vpc.subnets.public} == {SubnetKind.PUBLIC}
        assert {s.kind for s in config.vpc.subnets.private} == {SubnetKind.PRIVATE}

    def test_defaults(self, raw_config):
        """Test that node groups and add-ons are optional"""
        raw_config["eks"]["nodeGroups"] = None
        config = load_environment_config(raw_config)
        assert config.eks.node_groups == []
        assert not config.eks.addons.enabled

    def test_unknown_keys_ignored(self, raw_config):
        """Test that extra keys do not fail loading"""
        raw_config["vpc"]["comment"] = "ignored"
        load_environment_config(raw_config)

    def test_config_is_frozen(self, raw_config):
        """Test that a loaded config cannot be modified"""
        config = load_environment_config(raw_config)
        with pytest.raises(ValidationError):
            config.vpc.cidr = "10.1.0.0/16"

    def test_missing_section(self, raw_config):
        """Test that a missing eks section is reported by path"""
        del raw_config["eks"]
        with pytest.raises(ConfigError) as exc_info:
            load_environment_config(raw_config)
        assert [e.field for e in exc_info.value.errors] == ["eks"]

    def test_negative_size(self, raw_config, node_group):
        """Test that negative sizes are rejected with an indexed path"""
        node_group["size"]["desired"] = -1
        raw_config["eks"]["nodeGroups"] = [node_group]
        with pytest.raises(ConfigError) as exc_info:
            load_environment_config(raw_config)
        errors = exc_info.value.errors
        assert len(errors) == 1
        assert errors[0].field.startswith("eks.nodeGroups[0].size")
        assert errors[0].value == "-1"

    def test_not_a_mapping(self):
        """Test that a non-mapping config is rejected"""
        with pytest.raises(ConfigError):
            load_environment_config(["vpc"])


class TestLoadStackFile:
    """Test Pulumi stack file loading"""

    def test_load(self, tmp_path, raw_config):
        """Test that config and region are read from the stack file"""
        path = write_stack_file(tmp_path / "Pulumi.dev.yaml", raw_config)
        config, region = load_stack_file(path)
        assert config.vpc.name == "demo-vpc"
        assert region == "us-east-1"

    def test_explicit_project(self, tmp_path, raw_config):
        """Test that the config key of a named project is used"""
        path = write_stack_file(tmp_path / "Pulumi.dev.yaml", raw_config, project="other")
        config, _ = load_stack_file(path, "other")
        assert config.eks.count == 1

    def test_wrong_project(self, tmp_path, raw_config):
        """Test that a missing project key is an error"""
        path = write_stack_file(tmp_path / "Pulumi.dev.yaml", raw_config)
        with pytest.raises(ConfigError) as exc_info:
            load_stack_file(path, "other")
        assert exc_info.value.errors[0].field == "other:config"

    def test_missing_region(self, tmp_path, raw_config):
        """Test that a missing region is returned empty"""
        path = write_stack_file(tmp_path / "Pulumi.dev.yaml", raw_config, region=None)
        assert load_stack_file(path)[1] == ""

    def test_missing_file(self, tmp_path):
        """Test that a missing file is a configuration error"""
        with pytest.raises(ConfigError):
            load_stack_file(tmp_path / "Pulumi.nope.yaml")

    def test_no_config_section(self, tmp_path):
        """Test that a file without a config section is rejected"""
        path = tmp_path / "Pulumi.dev.yaml"
        path.write_text("encryptionsalt: abc\n")
        with pytest.raises(ConfigError):
            load_stack_file(path)

    def test_invalid_yaml(self, tmp_path):
        """Test that unparsable YAML is rejected"""
        path = tmp_path / "Pulumi.dev.yaml"
        path.write_text("config: [unclosed\n")
        with pytest.raises(ConfigError):
            load_stack_file(path)

    def test_directory_path(self, tmp_path):
        """Test that a path that cannot be read as a file is a configuration error"""
        with pytest.raises(ConfigError) as exc_info:
            load_stack_file(tmp_path)
        assert exc_info.value.errors[0].field == "file"
