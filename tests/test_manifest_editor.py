from __future__ import annotations

import tomllib

from stg_release.manifest import (
    LineKind,
    count_assignments,
    line_range_pass,
    parse_lines,
    remove_target_block,
    split_blocks,
)

from conftest import SAMPLE_MANIFEST


def test_parse_lines_tracks_multiline_strings_and_arrays() -> None:
    lines = parse_lines(SAMPLE_MANIFEST)
    kinds = {line.body: line.kind for line in lines}
    assert kinds["[[bin]]"] is LineKind.HEADER
    assert kinds['name = "stg-demo"'] is LineKind.ENTRY
    assert kinds["# main binary"] is LineKind.TRIVIA
    assert kinds['    ["README.md", "usr/share/doc/standard-terminal-graphics/README.md", "644"],'] is LineKind.CONTINUATION
    quoted_headers = [line for line in lines if line.body == "[[example]]"]
    assert [line.kind for line in quoted_headers] == [LineKind.HEADER, LineKind.CONTINUATION]


def test_split_blocks_keeps_every_line() -> None:
    blocks = split_blocks(parse_lines(SAMPLE_MANIFEST))
    assert "".join(block.text for block in blocks) == SAMPLE_MANIFEST
    assert blocks[0].section == "package"
    assert blocks[0].get("version") == "0.1.0"


def test_count_ignores_text_inside_strings() -> None:
    assert count_assignments(SAMPLE_MANIFEST, "example", "demo") == 1
    assert count_assignments(SAMPLE_MANIFEST, "bin", "stg-demo") == 1


def test_remove_target_block_removes_exactly_one_block() -> None:
    edit = remove_target_block(SAMPLE_MANIFEST, "example", "demo")

    assert edit.removed
    assert edit.changed
    assert edit.removed_text == '[[example]]\nname = "demo"\npath = "examples/demo.rs"\n'
    assert count_assignments(edit.text, "example", "demo") == 0
    assert count_assignments(edit.text, "bin", "stg-demo") == 1
    assert edit.text == SAMPLE_MANIFEST.replace(edit.removed_text, "", 1)
    assert tomllib.loads(edit.text)["package"]["metadata"]["deb"]["section"] == "graphics"


def test_line_range_pass_disagreement_falls_back_to_block_scan() -> None:
    fast = line_range_pass(SAMPLE_MANIFEST, "[[example]]", 'name = "demo"')
    assert 'path = "examples/demo.rs"\n\n# .deb' in fast

    edit = remove_target_block(SAMPLE_MANIFEST, "example", "demo")
    assert edit.strategy == "block-scan"
    assert edit.text != fast
    assert edit.notes


def test_line_range_strategy_when_passes_agree() -> None:
    text = '[package]\nname = "x"\n\n[[example]]\nname = "demo"\n\n[[bin]]\nname = "x"\n'
    edit = remove_target_block(text, "example", "demo")
    assert edit.strategy == "line-range"
    assert edit.text == '[package]\nname = "x"\n\n\n[[bin]]\nname = "x"\n'


def test_trailing_comments_before_next_header_survive() -> None:
    text = (
        '[[example]]\nname = "demo"\npath = "examples/demo.rs"\n'
        "\n# keep me\n"
        '[[example]]\nname = "other"\n'
    )
    edit = remove_target_block(text, "example", "demo")
    assert edit.text == '\n# keep me\n[[example]]\nname = "other"\n'


def test_only_first_matching_block_is_removed() -> None:
    text = '[[example]]\nname = "demo"\n[[example]]\nname = "demo"\n'
    edit = remove_target_block(text, "example", "demo")
    assert edit.text == '[[example]]\nname = "demo"\n'


def test_no_matching_block_leaves_text_untouched() -> None:
    text = '[[example]]\nname = "other"\n'
    edit = remove_target_block(text, "example", "demo")
    assert not edit.removed
    assert edit.strategy == "none"
    assert edit.text == text


def test_crlf_line_endings_preserved() -> None:
    text = '[package]\r\nname = "x"\r\n[[example]]\r\nname = "demo"\r\npath = "a.rs"\r\n[dependencies]\r\n'
    edit = remove_target_block(text, "example", "demo")
    assert edit.text == '[package]\r\nname = "x"\r\n[dependencies]\r\n'


def test_name_with_trailing_comment_and_single_quotes() -> None:
    text = "[[example]]\nname = 'demo' # the demo\n[lib]\n"
    edit = remove_target_block(text, "example", "demo")
    assert edit.removed
    assert edit.text == "[lib]\n"
