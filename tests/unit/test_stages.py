"""Unit tests for the transform stages."""

import pytest
from logseq_outline import LogseqBlock

from logseq_quartz.graph.resolver import LinkResolver
from logseq_quartz.transform.context import TransformContext
from logseq_quartz.transform.pipeline import PageTransformer, run_stages
from logseq_quartz.transform.stages import STAGES, format_property_key, protect

BLOCK_ID = "65f3a8e0-1234-5678-9abc-def012345678"


@pytest.fixture
def graph(make_graph):
    return make_graph(
        {
            "Project Alpha": "alias:: PA\n\n- alpha",
            "Notes": f"- Intro\n- TODO The key point\n  id:: {BLOCK_ID}",
            "$BOOT": "- boot",
            "Alpha": "tags:: project\nstatus:: active\n\n- a",
            "Beta": "tags:: project\n\n- b",
            "Home": "- home",
        }
    )


@pytest.fixture
def transformer(graph):
    return PageTransformer(LinkResolver(graph))


@pytest.fixture
def render(transformer, graph):
    """Transform one block's text as if it sat on the Home page."""

    def run(text: str, block: LogseqBlock = None) -> str:
        return transformer.transform_text(text, graph.get("Home"), block=block)

    return run


class TestStageOrder:
    def test_stage_names(self):
        assert [stage.name for stage in STAGES] == [
            "protect",
            "links",
            "embeds",
            "queries",
            "tasks",
            "structure",
            "tables",
            "escape_and_restore",
        ]

    def test_protect_hides_code_math_and_links(self, graph):
        ctx = TransformContext(page=graph.get("Home"), resolver=LinkResolver(graph))

        text = protect("`code` $x$ [[Project Alpha]] $$y$$", ctx)

        assert "`" not in text
        assert "$" not in text
        assert "[[" not in text
        assert [span.kind for span in ctx.spans] == ["code", "wikilink", "math", "math"]
        assert ctx.restore(text) == "`code` $x$ [[Project Alpha]] $$y$$"


class TestDollarEscaping:
    """Currency and token dollars are escaped; math is left alone."""

    def test_currency_and_math(self, render):
        output = render("Price: $100, formula: $x^2$")

        assert "\\$100" in output
        assert "$x^2$" in output
        assert output == "Price: \\$100, formula: $x^2$"

    def test_env_variable(self, render):
        assert render("Set $HOME first") == "Set \\$HOME first"

    def test_display_math_untouched(self, render):
        assert render("$$E = mc^2$$") == "$$E = mc^2$$"

    def test_already_escaped(self, render):
        assert render("costs \\$5") == "costs \\$5"

    def test_code_untouched(self, render):
        assert render("Use `echo $PATH` here") == "Use `echo $PATH` here"

    def test_fenced_code_untouched(self, render, graph):
        text = "```bash\necho $HOME [[Not A Page]]\n```"

        assert render(text) == text
        assert graph.stubs == {}


class TestLinks:
    """Wikilink resolution and rendering."""

    def test_exact(self, render):
        assert render("See [[Project Alpha]]") == "See [[Project Alpha]]"

    def test_alias_keeps_written_label(self, render):
        assert render("See [[PA]]") == "See [[Project Alpha|PA]]"

    def test_case_difference_keeps_written_label(self, render):
        assert render("[[project alpha]]") == "[[Project Alpha|project alpha]]"

    def test_explicit_label(self, render):
        assert render("[[Project Alpha|the project]]") == "[[Project Alpha|the project]]"

    def test_tag_link(self, render):
        assert render("#[[Project Alpha]]") == "[[Project Alpha]]"

    def test_dollar_page_becomes_anchor(self, render):
        assert render("Run [[$BOOT]] now") == 'Run <a href="/pages/%24BOOT" class="internal">&#36;BOOT</a> now'

    def test_missing_page_links_to_stub(self, render, graph):
        assert render("[[Ghost Page]]") == "[[ghost-page|Ghost Page]]"
        assert graph.stubs["ghost-page"].referenced_by == {"Home"}

    def test_missing_page_without_stubs(self, graph):
        transformer = PageTransformer(LinkResolver(graph), create_stubs=False)

        output = transformer.transform_text("[[Ghost Page]]", graph.get("Home"))

        assert output == "[[Ghost Page]]"

    def test_url_in_brackets_untouched(self, render):
        assert render("[[https://example.com]]") == "[[https://example.com]]"

    def test_markdown_link_to_page(self, render):
        assert render("[read this]([[Project Alpha]])") == "[[Project Alpha|read this]]"


class TestEmbeds:
    """Page embeds, block embeds and block references."""

    def test_page_embed(self, render):
        assert render("{{embed [[Notes]]}}") == "![[Notes]]"

    def test_block_embed(self, render):
        assert render(f"{{{{embed (({BLOCK_ID}))}}}}") == f"![[Notes#^{BLOCK_ID}]]"

    def test_block_embed_missing(self, render):
        missing = "00000000-0000-0000-0000-000000000000"
        assert render(f"{{{{embed (({missing}))}}}}") == "*Block embed - view in Logseq*"

    def test_block_reference(self, render):
        assert render(f"As noted (({BLOCK_ID}))") == f"As noted [[Notes#^{BLOCK_ID}|The key point]]"

    def test_block_reference_uppercase_id(self, render):
        assert render(f"(({BLOCK_ID.upper()}))") == f"[[Notes#^{BLOCK_ID}|The key point]]"

    def test_block_reference_missing(self, render):
        missing = "00000000-0000-0000-0000-000000000000"
        assert render(f"(({missing}))") == f"[→ block](#^{missing})"


class TestQueries:
    """Inline query evaluation."""

    def test_table_result(self, render):
        output = render("{{query (page-tags project)}}")

        assert output.splitlines() == [
            "| Page | Tags | Status |",
            "| --- | --- | --- |",
            "| [[Alpha]] | [[project]] | active |",
            "| [[Beta]] | [[project]] |  |",
        ]

    def test_query_reference_creates_no_stub(self, render, graph):
        render("{{query (page-tags [[project]])}}")
        assert graph.stubs == {}

    def test_block_properties_control_rendering(self, render):
        block = LogseqBlock(
            content=[
                "{{query (page-tags project)}}",
                "query-table:: false",
                "query-sort-by:: name",
                "query-sort-desc:: true",
            ],
            indent_level=0,
        )

        output = render(block.get_full_content(), block=block)

        assert output == "- [[Beta]]\n- [[Alpha]]"

    def test_no_results(self, render):
        output = render("{{query (task WAITING)}}")
        assert output == "> [!info] Query Results\n> No pages match this query.\n> `(task WAITING)`"

    def test_malformed_query_kept_inert(self, render):
        output = render("{{query (and (page-tags x)}}")
        assert output == "```\n{{query (and (page-tags x)}}\n```"


class TestTasks:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("TODO Ship it", "[ ] Ship it"),
            ("DONE Finished", "[x] Finished"),
            ("DOING Working", "[ ] 🔄 Working"),
            ("LATER Someday", "[ ] 📅 Someday"),
            ("WAITING On you", "[ ] ⏳ On you"),
            ("CANCELLED Nope", "[x] ❌ Nope"),
            ("TODO [#A] Urgent", "[ ] 🔴 Urgent"),
            ("Plain [#C] note", "Plain 🟢 note"),
            ("TODOS are not tasks", "TODOS are not tasks"),
        ],
    )
    def test_markers_and_priorities(self, render, text, expected):
        assert render(text) == expected

    def test_planning_lines(self, render):
        output = render("TODO Review\nSCHEDULED: <2024-01-15 Mon>\nDEADLINE: <2024-01-20 Sat>")
        assert output == "[ ] Review\n📅 Scheduled: 2024-01-15 Mon\n⏰ Deadline: 2024-01-20 Sat"


class TestStructure:
    """Properties, drawers, hiccup and macros."""

    def test_system_properties_dropped_user_properties_shown(self, render):
        text = f"Meeting\nid:: {BLOCK_ID}\ncollapsed:: true\nstatus:: done\ndue-date:: friday"
        assert render(text) == "Meeting\n**Status:** done\n**Due Date:** friday"

    def test_logbook_dropped(self, render):
        text = "Work\n:LOGBOOK:\nCLOCK: [2024-01-15 Mon 10:00]--[2024-01-15 Mon 11:00] =>  01:00:00\n:END:"
        assert render(text) == "Work"

    def test_hiccup(self, render):
        assert render('[:div {:class "note"} "Hi"]') == '<div class="note">Hi</div>'

    def test_malformed_hiccup_kept(self, render):
        assert render('[:div "oops"') == '[:div "oops"'

    def test_macros(self, render):
        assert render("{{cloze answer}}") == "==answer=="
        assert render("{{video https://youtu.be/x}}") == "![https://youtu.be/x](https://youtu.be/x)"
        assert render("{{renderer :todomaster}}") == "`[renderer]`"

    def test_pdf_embeds(self, render):
        assert render("{{pdf https://a.example/b.pdf}}").startswith('<iframe src="https://a.example/b.pdf"')
        assert render("![doc](../assets/file.pdf)").startswith('<iframe src="../assets/file.pdf"')

    def test_image_size_stripped(self, render):
        assert render("![img](a.png){:height 100, :width 200}") == "![img](a.png)"

    def test_format_property_key(self):
        assert format_property_key("due-date") == "Due Date"
        assert format_property_key("status") == "Status"


class TestTableStage:
    def test_separator_repaired(self, render):
        output = render("| a | b | c |\n|---|\n| 1 | 2 | 3 |")
        assert output == "| a | b | c |\n| --- | --- | --- |\n| 1 | 2 | 3 |"


class TestRunStages:
    def test_custom_stage_list(self, graph):
        ctx = TransformContext(page=graph.get("Home"), resolver=LinkResolver(graph))
        stages = [stage for stage in STAGES if stage.name in ("protect", "escape_and_restore")]

        assert run_stages("[[PA]] $5", ctx, stages) == "[[PA]] \\$5"
