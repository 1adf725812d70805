from __future__ import annotations

import pytest

import pathruby.core as core
from pathruby.core import Entry, InvalidBatchError, process_batch
from pathruby.nlp import Token


class _StubTokenizer:
    readings = {"第": "ダイ", "話": "ワ", "猫": "ネコ"}

    def __init__(self) -> None:
        self.calls: list[str] = []

    def tokenize(self, text: str) -> list[Token]:
        self.calls.append(text)
        tokens: list[Token] = []
        for ch in text:
            reading = self.readings.get(ch)
            if reading is None:
                tokens.append(Token(ch, ("記号", "一般", "*", "*", "*", "*", "*")))
            else:
                tokens.append(Token(ch, ("名詞", "一般", "*", "*", "*", "*", ch, reading, reading)))
        return tokens


class _FailingTokenizer:
    def tokenize(self, text: str) -> list[Token]:
        raise RuntimeError("tagger exploded")


def test_batch_is_sorted_naturally_and_masked() -> None:
    entries = process_batch(
        [["x10.png"], ["x1.png"], ["x2.png"]],
        "cat/${DIR}",
        tokenizer=_StubTokenizer(),
    )
    assert [entry.path for entry in entries] == ["x1.png", "x2.png", "x10.png"]
    assert [entry.name for entry in entries] == ["x1", "x2", "x10"]
    assert [entry.category for entry in entries] == ["cat/", "cat/", "cat/"]
    # Deliberately "" rather than "1", "2", "10": the whole masked stem "x<digits>" is
    # shared by every name, so the prefix removes it entirely.
    assert [entry.text for entry in entries] == ["", "", ""]
    assert [entry.ruby for entry in entries] == ["x1", "x2", "x10"]


def test_distinguishing_text_survives_masking() -> None:
    entries = process_batch(
        [["x10_c.png"], ["x1_a.png"], ["x2_b.png"]],
        "${DIR}",
        tokenizer=_StubTokenizer(),
    )
    assert [entry.text for entry in entries] == ["a", "b", "c"]


def test_single_entry_batch_strips_everything() -> None:
    (entry,) = process_batch([["a12b.txt"]], "${DIR}", tokenizer=_StubTokenizer())
    assert entry == Entry(path="a12b.txt", name="a12b", text="", ruby="a12b", category="")


def test_directories_sort_before_names_and_shorter_first() -> None:
    paths = [
        ["b", "2.txt"],
        ["a10", "1.txt"],
        ["a2", "1.txt"],
        ["a2", "sub", "0.txt"],
        ["z.txt"],
    ]
    entries = process_batch(paths, "${DIR}", tokenizer=_StubTokenizer())
    assert [entry.path for entry in entries] == [
        "z.txt",
        "a2/1.txt",
        "a2/sub/0.txt",
        "a10/1.txt",
        "b/2.txt",
    ]
    assert [entry.category for entry in entries] == ["", "a2", "a2/sub", "a10", "b"]


def test_names_are_nfkc_normalized_but_paths_are_not() -> None:
    entries = process_batch(
        [["話", "第２話_つづき.txt"], ["話", "第１話_はじまり.txt"]],
        "本_${DIR}",
        tokenizer=_StubTokenizer(),
    )
    assert [entry.path for entry in entries] == ["話/第１話_はじまり.txt", "話/第２話_つづき.txt"]
    assert [entry.name for entry in entries] == ["第1話_はじまり", "第2話_つづき"]
    assert [entry.text for entry in entries] == ["はじまり", "つづき"]
    assert [entry.ruby for entry in entries] == ["ダイ1ワ_はじまり", "ダイ2ワ_つづき"]
    assert [entry.category for entry in entries] == ["本_話", "本_話"]


def test_equal_keys_keep_input_order() -> None:
    entries = process_batch([["007.txt"], ["7.png"]], "", tokenizer=_StubTokenizer())
    assert [entry.path for entry in entries] == ["007.txt", "7.png"]


def test_reprocessing_output_paths_is_idempotent() -> None:
    first = process_batch(
        [["猫", "cat10_x.png"], ["猫", "cat9_y.png"], ["犬", "dog.png"]],
        "pets_${DIR}",
        tokenizer=_StubTokenizer(),
    )
    second = process_batch(
        [entry.path.split("/") for entry in first],
        "pets_${DIR}",
        tokenizer=_StubTokenizer(),
    )
    assert second == first


def test_progress_reports_every_entry() -> None:
    events: list[dict[str, object]] = []
    process_batch([["b.txt"], ["a.txt"]], "", tokenizer=_StubTokenizer(), progress=events.append)
    assert [event["index"] for event in events] == [1, 2]
    assert all(event["total"] == 2 for event in events)
    assert [event["path"] for event in events] == ["a.txt", "b.txt"]


@pytest.mark.parametrize(
    "paths",
    [
        [],
        [[]],
        [["ok.txt"], []],
        ["flat-string.txt"],
        [["dir", 3]],
        [["dir", ""]],
    ],
)
def test_invalid_batches_fail_before_tokenizing(paths) -> None:
    tokenizer = _StubTokenizer()
    with pytest.raises(InvalidBatchError):
        process_batch(paths, "${DIR}", tokenizer=tokenizer)
    assert tokenizer.calls == []


def test_pattern_must_be_a_string() -> None:
    with pytest.raises(InvalidBatchError):
        process_batch([["a.txt"]], None, tokenizer=_StubTokenizer())  # type: ignore[arg-type]


def test_tokenizer_failures_propagate() -> None:
    with pytest.raises(RuntimeError, match="tagger exploded"):
        process_batch([["a.txt"]], "${DIR}", tokenizer=_FailingTokenizer())


def test_default_tokenizer_is_built_lazily(monkeypatch) -> None:
    built: list[_StubTokenizer] = []

    def _factory() -> _StubTokenizer:
        tokenizer = _StubTokenizer()
        built.append(tokenizer)
        return tokenizer

    monkeypatch.setattr(core, "MecabTokenizer", _factory)

    with pytest.raises(InvalidBatchError):
        process_batch([], "${DIR}")
    assert built == []

    entries = process_batch([["猫.png"]], "${DIR}")
    assert entries[0].ruby == "ネコ"
    assert built[0].calls == ["猫"]


def test_debug_logging_goes_to_stderr(monkeypatch, capsys) -> None:
    monkeypatch.setattr(core, "_DEBUG_LOG", False)
    core.set_debug_logging(True)
    process_batch([["a1.txt"], ["a2.txt"]], "${DIR}", tokenizer=_StubTokenizer())
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[pathruby debug] 2 entries" in captured.err
    assert "a1.txt" in captured.err
