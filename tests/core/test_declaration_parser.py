"""
Tests for the declaration scan loop over whole files.
"""

import pytest
from unittest.mock import MagicMock

from script_registry.core.config import RegistryConfig
from script_registry.core.declaration_parser import DeclarationParser
from script_registry.core.module_context import ModuleContext
from script_registry.core.utils import count_braces


def _by_name(result):
    return {e.name: e for e in result.elements}


class TestScanLoop:

    def test_all_declarations_found(self, sample_parse_result):
        names = [e.name for e in sample_parse_result.elements]

        assert names == [
            "BlockComponentTypes", "DisplaySlotId", "Direction",
            "Entity", "Player", "WorldEvents",
            "Vector3", "TeleportOptions",
            "getPlayers", "ItemCallback", "world",
            "ActionFormData", "FormCancelationReason",
        ]
        assert sample_parse_result.skipped == []

    def test_module_assignment(self, sample_parse_result):
        elements = _by_name(sample_parse_result)

        assert elements["world"].module == "@minecraft/server"
        assert elements["ActionFormData"].module == "@minecraft/server-ui"
        assert elements["ActionFormData"].id == "@minecraft/server-ui.ActionFormData"
        assert elements["ActionFormData"].categories == ["Classes", "UI"]
        assert sample_parse_result.modules_seen() == ["@minecraft/server", "@minecraft/server-ui"]

    def test_detected_versions(self, sample_parse_result):
        assert sample_parse_result.detected_versions() == {
            "@minecraft/server": "2.3.0",
            "@minecraft/server-ui": "1.3.0",
        }

    def test_documentation_attached(self, sample_parse_result):
        elements = _by_name(sample_parse_result)

        assert elements["Entity"].description == "Represents the state of an entity."
        assert elements["WorldEvents"].stability == "deprecated"
        assert elements["world"].tags == ["preview"]
        assert elements["world"].stability == "experimental"
        assert elements["Direction"].description is None
        assert elements["Direction"].raw_doc_comment is None

    def test_package_documentation_not_attached_across_imports(self, sample_parse_result):
        elements = _by_name(sample_parse_result)

        assert elements["BlockComponentTypes"].description.startswith("The types of block components")
        assert elements["ActionFormData"].raw_doc_comment is None

    def test_members(self, sample_parse_result):
        entity = _by_name(sample_parse_result)["Entity"]

        assert [p.name for p in entity.properties] == ["dimension", "id", "nameTag"]
        assert [m.name for m in entity.methods] == ["addTag", "teleport"]
        add_tag = entity.methods[0]
        assert add_tag.description == "Adds a specified tag to an entity. This function can't be called in read-only mode."
        assert add_tag.tags == ["@param tag", "@throws This function can throw errors."]

    def test_examples(self, sample_parse_result):
        get_players = _by_name(sample_parse_result)["getPlayers"]

        assert len(get_players.examples) == 1
        example = get_players.examples[0]
        assert example.title == "showForm.ts"
        assert example.imports == ["@minecraft/server", "@minecraft/server-ui"]
        assert example.code.endswith("const form = new ActionFormData();")

    def test_ids_unique(self, sample_parse_result):
        ids = [e.id for e in sample_parse_result.elements]

        assert len(ids) == len(set(ids))

    def test_balance_invariant(self, sample_parse_result):
        lines = sample_parse_result.lines
        for outcome in sample_parse_result.outcomes:
            if outcome.kind not in ("class", "interface"):
                continue
            depth = 0
            for index in range(outcome.line_index, outcome.next_index):
                depth += count_braces(lines[index])
                assert depth >= 0
            assert depth == 0

    def test_idempotent(self, parser, sample_text):
        first = parser.parse_text(sample_text)
        second = parser.parse_text(sample_text)

        assert [e.id for e in first.elements] == [e.id for e in second.elements]
        assert [e.to_dict() for e in first.elements] == [e.to_dict() for e in second.elements]


class TestScenarios:

    def test_enum_scenario(self, parser):
        result = parser.parse_text("export enum Direction {\n  North = 0,\n  South = 1,\n}")

        assert len(result.elements) == 1
        assert [v.to_dict() for v in result.elements[0].enum_values] == [
            {"name": "North", "value": 0},
            {"name": "South", "value": 1},
        ]

    def test_function_scenario(self, parser):
        result = parser.parse_text("export function add(a: number, b: number): number {")

        element = result.elements[0]
        assert element.kind == "function"
        assert [p.to_dict() for p in element.parameters] == [
            {"name": "a", "type": "number", "optional": False},
            {"name": "b", "type": "number", "optional": False},
        ]
        assert element.return_type == "number"

    def test_documented_type_scenario(self, parser):
        result = parser.parse_text("/** * @remarks\n * Does a thing.\n * @deprecated\n */\nexport type Foo = string;")

        element = result.elements[0]
        assert element.description == "Does a thing."
        assert "deprecated" in element.tags
        assert element.stability == "deprecated"


class TestDocumentationLifetime:

    def test_stale_doc_dropped_after_code(self, parser):
        result = parser.parse_text("/** Orphan. */\nconst internal = 1;\nexport type Foo = string;")

        assert result.elements[0].description is None

    def test_blank_lines_keep_doc(self, parser):
        result = parser.parse_text("/** Kept. */\n\nexport type Foo = string;")

        assert result.elements[0].description == "Kept."

    def test_doc_not_reused_after_skip(self, parser):
        result = parser.parse_text("/** Lost. */\nexport function broken(a: number);\nexport type Foo = string;")

        assert len(result.skipped) == 1
        assert result.elements[0].name == "Foo"
        assert result.elements[0].description is None

    def test_declaration_inside_doc_block_ignored(self, parser):
        result = parser.parse_text("/**\n * export enum Fake {\n */\nexport type Foo = string;")

        assert [e.name for e in result.elements] == ["Foo"]


class TestModuleContext:

    def test_sticky_and_unknown_markers_ignored(self):
        ctx = ModuleContext.start("@minecraft/server", allowed=["@minecraft/server", "@minecraft/server-ui"])
        ctx = ctx.advance(' *   "module_name": "@minecraft/server-ui",')
        assert ctx.current == "@minecraft/server-ui"

        ctx = ctx.advance(' *   "module_name": "@other/module",')
        assert ctx.current == "@minecraft/server-ui"

        ctx = ctx.advance("export class A {")
        assert ctx.current == "@minecraft/server-ui"
        assert ctx.seen == ("@minecraft/server-ui",)

    def test_advance_returns_new_value(self):
        start = ModuleContext.start("@minecraft/server")
        moved = start.advance('"module_name": "@minecraft/server-net"')

        assert start.current == "@minecraft/server"
        assert moved.current == "@minecraft/server-net"

    def test_first_version_after_marker_wins(self):
        ctx = ModuleContext.start("@minecraft/server")
        for line in ['"module_name": "@minecraft/server-net"', '"version": "1.0.0-beta"', '"version": "9.9.9"']:
            ctx = ctx.advance(line)

        assert ctx.version_map() == {"@minecraft/server-net": "1.0.0-beta"}

    def test_default_module_recorded(self):
        ctx = ModuleContext.start("@minecraft/server").advance("")

        assert ctx.seen == ("@minecraft/server",)


class TestParseFile:

    def test_missing_file_raises(self, parser, temp_dir):
        with pytest.raises(FileNotFoundError):
            parser.parse_file(temp_dir / "missing.d.ts")

    def test_progress_reports_every_line(self, parser, sample_file, sample_text):
        progress = MagicMock()
        progress.__enter__.return_value = progress
        factory = MagicMock(return_value=progress)

        result = parser.parse_file(sample_file, progress_factory=factory)

        factory.assert_called_once_with(len(sample_text.splitlines()))
        total = sum(call.args[0] for call in progress.update.call_args_list)
        assert total == len(sample_text.splitlines())
        assert len(result.elements) == 13

    def test_performance_metrics(self, sample_file):
        parser = DeclarationParser(RegistryConfig())
        parser.parse_file(sample_file)

        assert parser.performance_metrics["total_elements"] == 13
        assert parser.performance_metrics["skipped_declarations"] == 0
