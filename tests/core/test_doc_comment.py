"""
Tests for documentation comment collection and derived fields.
"""

from script_registry.core.doc_comment import CommentCollector, CollectorState, DocComment


def _collect(lines):
    collector = CommentCollector()
    for line in lines:
        assert collector.feed(line.strip())
    return collector.take()


class TestCommentCollector:

    def test_block_states(self):
        collector = CommentCollector()

        assert collector.feed("/**") is True
        assert collector.state == CollectorState.IN_BLOCK
        assert collector.feed("* text") is True
        assert collector.feed("*/") is True
        assert collector.state == CollectorState.IDLE
        assert collector.has_pending()

    def test_non_doc_line_not_consumed(self):
        collector = CommentCollector()

        assert collector.feed("export enum A {") is False
        assert collector.feed("// line comment") is False
        assert collector.feed("/* plain block */") is False

    def test_single_line_block_is_complete(self):
        collector = CommentCollector()

        assert collector.feed("/** Short description. */") is True
        assert not collector.in_block
        doc = collector.take()
        assert doc.description() == "Short description."

    def test_take_clears_buffer(self):
        collector = CommentCollector()
        collector.feed("/** One. */")

        assert collector.take() is not None
        assert collector.take() is None
        assert collector.raw() is None

    def test_second_block_replaces_first(self):
        collector = CommentCollector()
        collector.feed("/** First. */")
        collector.feed("/** Second. */")

        assert collector.take().description() == "Second."

    def test_clear_ignored_while_in_block(self):
        collector = CommentCollector()
        collector.feed("/**")
        collector.feed("* keep")
        collector.clear()

        assert collector.raw() == "/**\n* keep"

    def test_take_while_open_returns_none(self):
        collector = CommentCollector()
        collector.feed("/**")

        assert collector.take() is None


class TestDocComment:

    def test_remarks_preferred_over_prose(self):
        doc = _collect([
            "/**",
            " * Leading prose.",
            " * @remarks",
            " * Does a thing",
            " * quite well.",
            " * @param x",
            " */",
        ])

        assert doc.description() == "Does a thing quite well."

    def test_prose_without_remarks(self):
        doc = _collect([
            "/**",
            " * The types of block components that are accessible via",
            " * function Block.getComponent.",
            " */",
        ])

        assert doc.description() == "The types of block components that are accessible via function Block.getComponent."

    def test_empty_block_has_no_description(self):
        doc = _collect(["/**", " * @beta", " */"])

        assert doc.description() is None

    def test_tags_in_marker_order(self):
        doc = _collect([
            "/**",
            " * @beta",
            " * @remarks",
            " * This function can't be called in read-only mode.",
            " * @deprecated",
            " */",
        ])

        assert doc.tags() == ["deprecated", "beta", "readonly-restricted"]

    def test_deprecated_takes_precedence_over_beta(self):
        doc = _collect(["/**", " * @beta", " * @deprecated", " */"])

        assert doc.stability() == "deprecated"

    def test_preview_is_experimental(self):
        doc = _collect(["/**", " * @preview", " */"])

        assert doc.stability() == "experimental"
        assert doc.tags() == ["preview"]

    def test_stable_without_markers(self):
        doc = _collect(["/**", " * Plain.", " */"])

        assert doc.stability() == "stable"
        assert doc.tags() == []

    def test_remarks_on_opening_line(self):
        doc = _collect(["/** * @remarks", " * Does a thing.", " * @deprecated", " */"])

        assert doc.description() == "Does a thing."
        assert "deprecated" in doc.tags()
        assert doc.stability() == "deprecated"

    def test_examples_filtered_by_language(self):
        doc = _collect([
            "/**",
            " * @example spawn.ts",
            " * ```typescript",
            ' * import { world } from "@minecraft/server";',
            " * world.sendMessage('hi');",
            " * ```",
            " * @example manifest",
            " * ```json",
            ' * { "a": 1 }',
            " * ```",
            " * @example",
            " * ```js",
            " * run();",
            " * ```",
            " */",
        ])
        examples = doc.examples()

        assert [e.title for e in examples] == ["spawn.ts", "Example"]
        assert examples[0].code == 'import { world } from "@minecraft/server";\nworld.sendMessage(\'hi\');'
        assert examples[0].imports == ["@minecraft/server"]
        assert examples[1].code == "run();"
        assert examples[1].imports == []

    def test_fenced_code_not_in_description(self):
        doc = _collect([
            "/**",
            " * @remarks",
            " * Shows a form.",
            " * ```ts",
            " * @notatag()",
            " * ```",
            " */",
        ])

        assert doc.description() == "Shows a form."
