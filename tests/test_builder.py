"""Tests for the builder agent."""

import json

import pytest

from plugmate.core.builder import create_builder_agent
from plugmate.errors import MalformedResponseError, ValidationFailedError
from plugmate.plugins.catalog import create_plugin_catalog

from .helpers import FakeClient

COPY_CODE = (
    "<#\n.SYNOPSIS\nCopy a folder.\n#>\n"
    "function files_copy {\n"
    "    param(\n"
    "        [Parameter(Mandatory = $true)][string]$Source,\n"
    "        [switch]$Force\n"
    "    )\n"
    "    Copy-Item -LiteralPath $Source -Recurse\n"
    "}"
)


def builder_reply(**overrides):
    data = {
        "function_name": "files_copy",
        "function_code": COPY_CODE,
        "target_file": "",
        "is_new_toolkit": True,
        "new_prefix": "files",
        "explanation": "copies a folder",
    }
    data.update(overrides)
    return json.dumps(data)


@pytest.fixture(autouse=True)
def no_pwsh(monkeypatch):
    monkeypatch.setattr("plugmate.plugins.writer.shutil.which", lambda name: None)


class TestBuilderAgent:
    """Tests for generating and writing functions."""

    def test_build_writes_new_toolkit(self, base_dir):
        client = FakeClient([builder_reply()])
        agent = create_builder_agent(client, create_plugin_catalog(base_dir))

        built = agent.build("copy a folder", "back up my photos")

        assert built.name == "files_copy"
        assert built.path.name == "Files_Toolkit.ps1"
        assert built.info.kind == "function"
        assert built.info.synopsis == "Copy a folder."
        assert built.mandatory_parameters() == ["Source"]

    def test_prompt_lists_existing_toolkits(self, base_dir, write_plugin):
        write_plugin("toolkits/Git_Toolkit.psm1", "function git_status {\n}\n")
        client = FakeClient([builder_reply()])
        agent = create_builder_agent(client, create_plugin_catalog(base_dir))

        agent.build("copy a folder", "back up my photos")

        prompt = client.prompts[0]
        assert "Prefix: git_ | Functions: git_status" in prompt
        assert "back up my photos" in prompt
        assert "copy a folder" in prompt

    def test_appends_to_target_toolkit(self, base_dir, write_plugin):
        existing = write_plugin("toolkits/Files_Toolkit.psm1", "function files_list {\n}\n")
        client = FakeClient([builder_reply(target_file="Files_Toolkit.psm1", is_new_toolkit=False)])
        agent = create_builder_agent(client, create_plugin_catalog(base_dir))

        built = agent.build("copy a folder", "copy stuff")

        assert built.path == existing
        assert "function files_copy {" in existing.read_text(encoding="utf-8")

    def test_malformed_reply(self, base_dir):
        agent = create_builder_agent(FakeClient(["no json"]), create_plugin_catalog(base_dir))

        with pytest.raises(MalformedResponseError):
            agent.build("copy a folder", "copy stuff")

    def test_mismatched_name_writes_nothing(self, base_dir, plugins_dir):
        client = FakeClient([builder_reply(function_name="files_clone")])
        agent = create_builder_agent(client, create_plugin_catalog(base_dir))

        with pytest.raises(ValidationFailedError, match="does not declare files_clone"):
            agent.build("copy a folder", "copy stuff")
        assert list(plugins_dir.iterdir()) == []

    def test_name_collision(self, base_dir, write_plugin):
        write_plugin("files_copy.sh", "cp -r \"$1\" \"$2\"\n")
        agent = create_builder_agent(FakeClient([builder_reply()]), create_plugin_catalog(base_dir))

        with pytest.raises(ValidationFailedError):
            agent.build("copy a folder", "copy stuff")
