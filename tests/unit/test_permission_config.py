"""Unit tests for PermissionConfig precedence rules."""

import pytest

from swarmAgent.permissions import NOT_IN_ALLOWED_LIST, PermissionConfig
from swarmAgent.utils import ConfigurationError


BASE = "/work/project"


def make(**config):
    return PermissionConfig.from_dict(config, BASE)


class TestPathPermissions:
    """Denied patterns always win; empty allow-list means allow."""

    def test_denied_overrides_allowed(self):
        config = make(allowed_paths=["tmp/**/*"], denied_paths=["tmp/secrets/**"])

        assert config.allowed("tmp/secrets/key.pem") is False
        assert config.allowed("tmp/file.txt") is True

    def test_empty_allow_list_allows_anything_not_denied(self):
        config = make(denied_paths=["secrets/**"])

        assert config.allowed("src/main.py") is True
        assert config.allowed("/etc/hosts") is True
        assert config.allowed("secrets/token") is False

    def test_non_empty_allow_list_denies_unmatched_paths(self):
        config = make(allowed_paths=["src/**/*"])

        assert config.allowed("src/app.py") is True
        assert config.allowed("docs/readme.md") is False

    def test_directory_search_allows_parent_of_allowed_pattern(self):
        config = make(allowed_paths=["tmp/sub/**/*"])

        assert config.allowed("tmp", directory_search=True) is True
        assert config.allowed("other", directory_search=True) is False
        assert config.allowed("tmp") is False

    def test_relative_paths_resolve_against_base_directory(self):
        config = make(allowed_paths=["src/*"])

        assert config.to_absolute("src/a.py") == "/work/project/src/a.py"
        assert config.to_absolute("/abs/file") == "/abs/file"
        assert config.allowed("/work/project/src/a.py") is True
        assert config.allowed("./src/../src/a.py") is True

    def test_absolute_patterns_are_kept_as_is(self):
        config = make(allowed_paths=["/shared/**"])

        assert config.allowed_patterns == ("/shared/**",)
        assert config.allowed("/shared/data/x.csv") is True

    def test_find_blocking_pattern(self):
        config = make(allowed_paths=["tmp/**/*"], denied_paths=["tmp/secrets/**"])

        assert config.find_blocking_pattern("tmp/secrets/a") == "/work/project/tmp/secrets/**"
        assert config.find_blocking_pattern("elsewhere.txt") == NOT_IN_ALLOWED_LIST
        assert config.find_blocking_pattern("tmp/ok.txt") is None


class TestCommandPermissions:
    """Commands use regular expressions with the same precedence."""

    def test_denied_command_wins(self):
        config = make(allowed_commands=["^git "], denied_commands=["push --force"])

        assert config.command_allowed("git status") is True
        assert config.command_allowed("git push --force origin") is False
        assert config.find_blocking_command_pattern("git push --force") == "push --force"

    def test_allow_list_for_commands(self):
        config = make(allowed_commands=["^ls\\b"])

        assert config.command_allowed("ls -la") is True
        assert config.command_allowed("rm -rf /") is False
        assert config.find_blocking_command_pattern("rm -rf /") == NOT_IN_ALLOWED_LIST

    def test_invalid_regex_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError, match="Invalid regex"):
            make(allowed_commands=["(unclosed"])

    def test_unrestricted(self):
        assert make().is_unrestricted
        assert not make(denied_paths=["x"]).is_unrestricted
